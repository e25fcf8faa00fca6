"""Line lookup and tokenization for procfs pseudo-files.

Every reader here opens its file inside a ``with`` block and resolves a
missing file or absent line to default data instead of raising. The kernel
regenerates these files on each read, so a file that existed when a PID was
listed may be gone by the time it is opened.
"""

import math
from dataclasses import dataclass
from os import PathLike

from proctop.errors import MalformedNumericError
from proctop.logs import get_logger

DEFAULT_TOKEN = "0"
RECORD_CAPACITY = 25
# /proc/<pid>/stat carries 52 fields on current kernels
PROCESS_STAT_CAPACITY = 52

logger = get_logger("records")

StrPath = str | PathLike[str]


@dataclass(slots=True, frozen=True)
class Record:
    """Tokens of one pseudo-file line, padded to a fixed capacity.

    Indexing any slot below ``capacity`` returns the token, or ``"0"`` when
    the line was shorter. Use ``present()`` or ``get()`` to tell real data
    from padding; ``found`` is False when the file or line was missing.
    """

    tokens: tuple[str, ...] = ()
    capacity: int = RECORD_CAPACITY
    found: bool = False
    source: str = ""

    def __len__(self) -> int:
        return self.capacity

    def __getitem__(self, index: int) -> str:
        if not 0 <= index < self.capacity:
            raise IndexError(f"record index {index} outside capacity {self.capacity}")
        if index < len(self.tokens):
            return self.tokens[index]
        return DEFAULT_TOKEN

    def present(self, index: int) -> bool:
        """Whether ``index`` holds a token read from the file."""
        return 0 <= index < len(self.tokens)

    def get(self, index: int, default: str | None = None) -> str | None:
        if self.present(index):
            return self.tokens[index]
        return default

    def padded(self) -> list[str]:
        return [self[i] for i in range(self.capacity)]


def _make_record(tokens: list[str], capacity: int, path: StrPath) -> Record:
    return Record(tokens=tuple(tokens[:capacity]), capacity=capacity, found=True, source=str(path))


def _missing(capacity: int, path: StrPath) -> Record:
    return Record(capacity=capacity, source=str(path))


def find_record(path: StrPath, key: str = "", capacity: int = RECORD_CAPACITY) -> Record:
    """
    Tokenize the first line of ``path`` whose leading token equals ``key``.

    With an empty key the file's first line is used. The first matching
    line wins. An unreadable file or a key with no matching line gives an
    all-default record.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            if not key:
                line = stream.readline()
                if line:
                    return _make_record(line.split(), capacity, path)
                logger.debug("record_source_empty", path=str(path))
                return _missing(capacity, path)
            for line in stream:
                tokens = line.split()
                if tokens and tokens[0] == key:
                    return _make_record(tokens, capacity, path)
    except OSError as exc:
        logger.debug("record_source_unreadable", path=str(path), error=str(exc))
        return _missing(capacity, path)

    logger.debug("record_key_not_found", path=str(path), key=key)
    return _missing(capacity, path)


def find_value(path: StrPath, key: str) -> str:
    """Second column of the first ``key value`` line in ``path``, or ``"0"``."""
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            for line in stream:
                tokens = line.split()
                if tokens and tokens[0] == key:
                    return tokens[1] if len(tokens) > 1 else DEFAULT_TOKEN
    except OSError as exc:
        logger.debug("record_source_unreadable", path=str(path), error=str(exc))
        return DEFAULT_TOKEN

    logger.debug("record_key_not_found", path=str(path), key=key)
    return DEFAULT_TOKEN


def read_first_line(path: StrPath) -> str:
    """First line of ``path`` without its newline, ``""`` if unreadable."""
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            return stream.readline().rstrip("\n")
    except OSError as exc:
        logger.debug("record_source_unreadable", path=str(path), error=str(exc))
        return ""


def read_lines(path: StrPath) -> list[str]:
    """All lines of a small text file, empty if unreadable."""
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            return stream.read().splitlines()
    except OSError as exc:
        logger.debug("record_source_unreadable", path=str(path), error=str(exc))
        return []


def split_process_stat(line: str) -> list[str]:
    """
    Split a ``/proc/<pid>/stat`` line into fields.

    The command name sits in parentheses and may itself contain spaces or
    parentheses, so it is cut out between the first "(" and the last ")"
    and kept as a single field.
    """
    start = line.find("(")
    end = line.rfind(")")
    if start == -1 or end < start:
        return line.split()
    return [*line[:start].split(), line[start : end + 1], *line[end + 1 :].split()]


def read_process_stat(path: StrPath, capacity: int = PROCESS_STAT_CAPACITY) -> Record:
    """Record of a process stat file with the command name as one token."""
    line = read_first_line(path)
    if not line:
        return _missing(capacity, path)
    return _make_record(split_process_stat(line), capacity, path)


def to_int(token: str, *, source: str = "", field: str = "") -> int:
    """Parse an integer token, raising MalformedNumericError on junk."""
    try:
        return int(token)
    except ValueError:
        raise MalformedNumericError(token, source=source, field=field) from None


def to_float(token: str, *, source: str = "", field: str = "") -> float:
    """Parse a finite float token, raising MalformedNumericError otherwise."""
    try:
        value = float(token)
    except ValueError:
        raise MalformedNumericError(token, source=source, field=field) from None
    if not math.isfinite(value):
        raise MalformedNumericError(token, source=source, field=field)
    return value
