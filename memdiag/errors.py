"""Exception types shared by readers and sections."""


class SourceUnavailable(Exception):
    """A file or command backing a metric is missing or unreadable."""

    pass


class FileError(SourceUnavailable):
    """Error accessing a file."""

    pass


class CommandError(SourceUnavailable):
    """Error running a command."""

    pass


class MalformedSample(ValueError):
    """A value was read but did not parse as expected."""

    pass
