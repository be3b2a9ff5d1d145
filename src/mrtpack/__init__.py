from .model import BuildStep, CommandResult, ExecOptions, StagingPaths, StepStatus
from .parsers import classify
from .runner import PipelineRunContext, Stage, run_pipeline
from .shell import execute

__all__ = [
    "BuildStep",
    "CommandResult",
    "ExecOptions",
    "StagingPaths",
    "StepStatus",
    "classify",
    "PipelineRunContext",
    "Stage",
    "run_pipeline",
    "execute",
]
