"""
Errors raised while turning raw HAPT recordings into tensors.

Every error is fatal to a pipeline run: a corrupt or incomplete dataset must
stop processing instead of producing misaligned examples.
"""


class HaptDataError(ValueError):
    """Base class for all dataset preparation errors."""


class ParseError(HaptDataError):
    """A table or signal file row is malformed."""

    def __init__(self, path, line, reason):
        self.path = str(path)
        self.line = line
        self.reason = reason
        where = f"{self.path}:{line}" if line is not None else self.path
        super().__init__(f"{where}: {reason}")


class MissingFileError(HaptDataError, FileNotFoundError):
    """An expected signal file is absent."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"Signal file not found: {self.path}")


class AlignmentError(HaptDataError):
    """The motion and rotation files of one recording differ in length."""


class OutOfRangeError(HaptDataError):
    """A labeled interval exceeds the bounds of its recording."""


class UnknownActivityError(HaptDataError):
    """An interval references an activity id with no name."""


class EncodingError(HaptDataError):
    """An activity id falls outside the encodable range after the offset."""
