"""Bounded reads and tokenizing of procfs-style accounting text."""

from os import PathLike

from ptop.errors import ParseError, TruncatedSourceError

# Pseudo-files report a size of 0, so reads are capped explicitly.
DEFAULT_READ_LIMIT = 1024 * 1024


def read_source(path: str | PathLike[str], limit: int = DEFAULT_READ_LIMIT) -> bytes:
    """
    Read a whole accounting source, refusing anything larger than ``limit``.

    Args:
        path: File to read.
        limit: Maximum number of bytes accepted.

    Raises:
        OSError: The file could not be opened or read.
        TruncatedSourceError: The file holds more than ``limit`` bytes.
    """
    with open(path, "rb") as source:
        data = source.read(limit + 1)
    if len(data) > limit:
        raise TruncatedSourceError(str(path), limit)
    return data


def parse_uint(token: str) -> int:
    """Parse an unsigned decimal integer token."""
    if not (token.isascii() and token.isdigit()):
        raise ParseError(f"not an unsigned integer: {token!r}")
    return int(token)


class TextTableParser:
    """
    Tokenizer for newline-separated, whitespace-delimited accounting records.

    Handles both table-like sources (``cpu  10 20 30 ...``) and labeled
    ``Key: value unit`` sources such as meminfo and per-process status.
    """

    def __init__(self, data: bytes | str) -> None:
        """Initialize the parser from raw bytes or already-decoded text."""
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        self._rows: list[list[str]] = [line.split() for line in data.splitlines()]

    @property
    def rows(self) -> list[list[str]]:
        """Tokenized non-empty lines, in source order."""
        return [row for row in self._rows if row]

    def row(self, key: str) -> list[str]:
        """
        Return the tokens following the first row whose first token is exactly ``key``.

        Raises:
            ParseError: No such row exists.
        """
        for tokens in self._rows:
            if tokens and tokens[0] == key:
                return tokens[1:]
        raise ParseError(f"no record with key {key!r}")

    def value(self, label: str) -> int:
        """
        Return the integer value of a ``label: value [unit]`` record.

        ``label`` is given without the trailing colon.

        Raises:
            ParseError: The record is missing or its value is not an integer.
        """
        prefix = f"{label}:"
        for tokens in self._rows:
            if tokens and tokens[0] == prefix:
                if len(tokens) < 2:
                    raise ParseError(f"record {label!r} has no value")
                return parse_uint(tokens[1])
        raise ParseError(f"no record labeled {label!r}")

    def value_or(self, label: str, default: int = 0) -> int:
        """Like :meth:`value`, but fall back to ``default`` on any parse failure."""
        try:
            return self.value(label)
        except ParseError:
            return default
