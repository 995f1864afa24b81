"""Filesystem utilities for readers."""

from typing import TYPE_CHECKING

from memdiag.errors import FileError, MalformedSample

if TYPE_CHECKING:
    from memdiag.core.context import Context


def read_file(
    path: str,
    context: "Context | None" = None,
    default: str | None = None,
) -> str:
    """
    Read file contents.

    Args:
        path: Path to file
        context: Execution context (for testing)
        default: Default value if file doesn't exist or can't be read

    Returns:
        File contents

    Raises:
        FileError: If file can't be read and no default provided
    """
    if context is None:
        from memdiag.core.context import Context
        context = Context()

    try:
        return context.read_file(path)
    except FileNotFoundError:
        if default is not None:
            return default
        raise FileError(f"File not found: {path}")
    except OSError as e:
        if default is not None:
            return default
        raise FileError(f"Cannot read {path}: {e.strerror or e}") from e


def read_int(
    path: str,
    context: "Context | None" = None,
) -> int:
    """
    Read a file holding a single integer, such as a sysctl or cgroup counter.

    Raises:
        FileError: If the file can't be read
        MalformedSample: If the content is not an integer
    """
    content = read_file(path, context=context).strip()
    try:
        return int(content)
    except ValueError:
        raise MalformedSample(f"{path}: expected an integer, got {content!r}")


def file_exists(
    path: str,
    context: "Context | None" = None,
) -> bool:
    """
    Check if file exists.

    Args:
        path: Path to check
        context: Execution context (for testing)

    Returns:
        True if file exists
    """
    if context is None:
        from memdiag.core.context import Context
        context = Context()

    return context.file_exists(path)


def glob_files(
    pattern: str,
    context: "Context | None" = None,
    recursive: bool = False,
) -> list[str]:
    """
    Find files matching pattern.

    Args:
        pattern: Absolute glob pattern
        context: Execution context (for testing)
        recursive: Let ``**`` match any number of directories

    Returns:
        List of matching file paths
    """
    if context is None:
        from memdiag.core.context import Context
        context = Context()

    return context.glob(pattern, recursive=recursive)
