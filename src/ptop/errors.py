"""Exception hierarchy for ptop."""


class PtopError(Exception):
    """Base class for all ptop errors."""


class ParseError(PtopError, ValueError):
    """An accounting record could not be parsed (bad integer, missing key)."""


class TruncatedSourceError(ParseError):
    """An accounting source was larger than the configured read cap."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(f"{path} exceeds the {limit} byte read limit")
        self.path = path
        self.limit = limit


class InvalidAccountingFormat(PtopError):
    """A required aggregate field is missing or unparsable."""


class SourceUnavailable(InvalidAccountingFormat):
    """An aggregate accounting source could not be opened or read."""


class TransientProcessRace(PtopError):
    """A per-process read failed, usually because the process exited."""

    def __init__(self, pid: int, reason: str = "") -> None:
        message = f"process {pid} vanished"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.pid = pid


class OutputSinkFailure(PtopError):
    """Writing a rendered frame to the output stream failed."""
