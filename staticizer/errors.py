"""Exception hierarchy for Staticizer."""


class StaticizerError(Exception):
    """Base class for all errors raised by Staticizer."""


class MalformedClassError(StaticizerError):
    """A class declaration cannot be analyzed safely (e.g. it contains syntax errors)."""

    def __init__(self, class_name: str, reason: str):
        self.class_name = class_name
        self.reason = reason
        super().__init__(f"{class_name}: {reason}")


class SourceReadError(StaticizerError):
    """A source file could not be read or decoded."""


class BackupError(StaticizerError):
    """A backup could not be created or restored."""
