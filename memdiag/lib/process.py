"""Process utilities for readers."""

import subprocess
from typing import TYPE_CHECKING

from memdiag.errors import CommandError

if TYPE_CHECKING:
    from memdiag.core.context import Context


def run_command(
    cmd: list[str],
    context: "Context | None" = None,
    check: bool = False,
    timeout: int | None = 60,
) -> str:
    """
    Run a command and return its output.

    Args:
        cmd: Command and arguments
        context: Execution context (for testing)
        check: Raise on non-zero exit
        timeout: Timeout in seconds

    Returns:
        Command stdout

    Raises:
        CommandError: If the command can't be started, times out, exits
            non-zero while check=True, or prints undecodable output
    """
    if context is None:
        from memdiag.core.context import Context
        context = Context()

    try:
        result = context.run(cmd, check=check, timeout=timeout)
    except subprocess.CalledProcessError as e:
        raise CommandError(f"Command failed with exit code {e.returncode}: {' '.join(cmd)}") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"Command timed out: {' '.join(cmd)}") from e
    except OSError as e:
        raise CommandError(f"Command failed: {' '.join(cmd)}: {e}") from e
    except UnicodeDecodeError as e:
        raise CommandError(f"Command output is not valid text: {' '.join(cmd)}") from e
    return result.stdout


def check_tool(
    name: str,
    context: "Context | None" = None,
    required: bool = False,
) -> bool:
    """
    Check if a tool exists in PATH.

    Args:
        name: Tool name to check
        context: Execution context (for testing)
        required: Raise if tool is missing

    Returns:
        True if tool exists

    Raises:
        CommandError: If required=True and tool is missing
    """
    if context is None:
        from memdiag.core.context import Context
        context = Context()

    exists = context.check_tool(name)

    if required and not exists:
        raise CommandError(f"Required tool not found: {name}")

    return exists
