# shell.py
# Single entry point for running external commands.
# The rest of the pipeline never calls subprocess directly.

from __future__ import annotations

import os
import queue
import signal
import subprocess
import threading
import time
from typing import IO, Callable, Dict, List, Optional, Tuple

from .errors import CommandFailed, CommandTimeout, SpawnError
from .model import CommandResult, ExecOptions

# (stream name, chunk) -> None, stream is "stdout" or "stderr"
OutputCallback = Callable[[str, str], None]


def execute(
    command: str,
    options: ExecOptions | None = None,
    on_output: Optional[OutputCallback] = None,
) -> CommandResult:
    """
    Run a shell command and return its captured output.

    Output is read line by line on helper threads, but on_output is only ever
    called from the calling thread, in arrival order.

    Args:
        command: Shell command line (run with shell=True)
        options: ExecOptions, defaults to ExecOptions()
        on_output: Optional callback fired for every chunk of output

    Returns:
        CommandResult with the full stdout/stderr and the exit code

    Raises:
        SpawnError: the process could not be started
        CommandFailed: non-zero exit and ignore_exit_code is not set
        CommandTimeout: the watchdog timeout elapsed
    """
    options = options or ExecOptions()

    env = os.environ.copy()
    env.update(options.env or {})
    cwd = str(options.cwd) if options.cwd is not None else None

    if options.inherit_output:
        result = _run_inherited(command, options, env, cwd)
    else:
        result = _run_captured(command, options, env, cwd, on_output)

    if result.exit_code != 0 and not options.ignore_exit_code:
        raise CommandFailed(
            command=command,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _spawn(command: str, env: Dict[str, str], cwd: str | None, capture: bool) -> subprocess.Popen:
    pipe = subprocess.PIPE if capture else None
    try:
        return subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            env=env,
            stdout=pipe,
            stderr=pipe,
            text=True,
            errors="replace",
            start_new_session=True,  # own process group, so _kill reaches grandchildren
        )
    except OSError as e:
        raise SpawnError(command=command, cause=e) from e


def _run_inherited(command: str, options: ExecOptions, env: Dict[str, str], cwd: str | None) -> CommandResult:
    proc = _spawn(command, env, cwd, capture=False)
    try:
        exit_code = proc.wait(timeout=options.timeout)
    except subprocess.TimeoutExpired:
        _kill(proc)
        raise CommandTimeout(command=command, timeout=options.timeout) from None
    except BaseException:
        _kill(proc)
        raise
    return CommandResult(stdout="", stderr="", exit_code=exit_code)


def _run_captured(
    command: str,
    options: ExecOptions,
    env: Dict[str, str],
    cwd: str | None,
    on_output: Optional[OutputCallback],
) -> CommandResult:
    proc = _spawn(command, env, cwd, capture=True)

    chunks: "queue.Queue[Tuple[str, str | None]]" = queue.Queue()
    for name, pipe in (("stdout", proc.stdout), ("stderr", proc.stderr)):
        threading.Thread(target=_pump, args=(pipe, name, chunks), daemon=True).start()

    buffers: Dict[str, List[str]] = {"stdout": [], "stderr": []}
    deadline = time.monotonic() + options.timeout if options.timeout else None

    try:
        open_streams = 2
        while open_streams:
            try:
                name, chunk = chunks.get(timeout=_remaining(deadline))
            except queue.Empty:
                raise subprocess.TimeoutExpired(command, options.timeout) from None
            if chunk is None:
                open_streams -= 1
                continue
            buffers[name].append(chunk)
            if on_output is not None:
                on_output(name, chunk)
        exit_code = proc.wait(timeout=_remaining(deadline))
    except subprocess.TimeoutExpired:
        _kill(proc)
        raise CommandTimeout(
            command=command,
            timeout=options.timeout,
            stdout="".join(buffers["stdout"]),
            stderr="".join(buffers["stderr"]),
        ) from None
    except BaseException:
        _kill(proc)
        raise

    return CommandResult(
        stdout="".join(buffers["stdout"]),
        stderr="".join(buffers["stderr"]),
        exit_code=exit_code,
    )


def _pump(pipe: IO[str], name: str, chunks: "queue.Queue[Tuple[str, str | None]]") -> None:
    try:
        for line in iter(pipe.readline, ""):
            chunks.put((name, line))
    finally:
        pipe.close()
        chunks.put((name, None))  # end-of-stream marker


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _kill(proc: subprocess.Popen) -> None:
    # The shell may already be gone while its children still hold the pipes.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    proc.wait()
