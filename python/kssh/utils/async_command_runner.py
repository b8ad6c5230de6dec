"""
kssh/utils/async_command_runner.py

Runs a local command in a subprocess and returns its stdout. Used to drive
'kubectl'. There are no retries: a failed command raises CommandError once,
carrying the return code and stderr so callers can classify the failure
(e.g. kubectl's NotFound) without parsing the message.

Usage example:
    from kssh.utils.async_command_runner import run_command, CommandError

    try:
        output = await run_command(["kubectl", "get", "ns", "-o", "json"])
    except CommandError as err:
        print(f"Command failed: {err}")
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Represents a failure when executing a shell command.

    Attributes:
        message (str): The error message describing the command failure.
        return_code (Optional[int]): The exit code if available.
        stderr (str): Captured stderr, always kept even when the message hides it.
    """

    def __init__(
        self,
        message: str,
        return_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.return_code = return_code
        self.stderr = stderr


async def run_command(
    command: List[str],
    *,
    sensitive: bool = True,
    env: Optional[Dict[str, str]] = None,
    input_data: Optional[str] = None,
    successful_return_codes: Optional[List[int]] = None,
) -> str:
    """
    Execute a command asynchronously and wait for it to finish.

    When `sensitive=True`, the command line and stdout are omitted from the error
    message. Stderr is included either way since it carries the diagnosis.

    Args:
        command (List[str]): The command and arguments to execute.
        sensitive (bool): If True, hides command details in the raised error.
        env (Optional[Dict[str, str]]): Extra environment variables.
        input_data (Optional[str]): If provided, passed to stdin.
        successful_return_codes (Optional[List[int]]): Codes treated as success.
            Defaults to [0].

    Returns:
        str: The captured stdout of the command on success.

    Raises:
        CommandError: If the executable is missing or the command returns a code
            not in `successful_return_codes`.
    """
    ok_codes = successful_return_codes if successful_return_codes is not None else [0]
    proc_env = None
    if env:
        proc_env = os.environ.copy()
        proc_env.update(env)

    stdin = asyncio.subprocess.PIPE if input_data else asyncio.subprocess.DEVNULL

    logger.debug("Running command: %s", command[0] if sensitive else " ".join(command))
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=stdin,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=proc_env,
        )
    except OSError as exc:
        raise CommandError(f"Failed to start '{command[0]}': {exc}") from exc

    stdout_bytes, stderr_bytes = await proc.communicate(
        input=input_data.encode() if input_data else None
    )
    stdout_str = stdout_bytes.decode(errors="replace").strip()
    stderr_str = stderr_bytes.decode(errors="replace").strip()

    if proc.returncode not in ok_codes:
        detail = f"\nStderr: {stderr_str}" if stderr_str else ""
        if not sensitive:
            detail = f"\nCommand: {' '.join(command)}\nStdout: {stdout_str}{detail}"
        raise CommandError(
            f"Command failed with return code {proc.returncode}.{detail}",
            proc.returncode,
            stderr_str,
        )

    return stdout_str
