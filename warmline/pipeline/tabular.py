"""
Delimited Text Parsing

Tokenizes comma-delimited lines and turns export text into header-keyed
rows, locating the header row behind any free-text preamble.
"""

import logging
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Optional

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"
DEFAULT_SCAN_LINES = 20

HeaderPredicate = Callable[[list[str]], bool]


def tokenize_line(line: str) -> list[str]:
    """Split one line into trimmed field values.

    A double quote toggles quoted mode; a doubled quote inside quoted mode
    is a literal quote. Commas only separate fields outside quoted mode.
    An unterminated quote simply ends with the line.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    values.append("".join(current).strip())
    return values


def split_lines(text: str) -> list[str]:
    """Split text into non-blank lines, dropping a leading BOM."""
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]
    return [line for line in re.split(r"\r?\n", text) if line.strip()]


def normalize_header(label: str) -> str:
    """Lowercase a header label and strip everything but letters and digits."""
    return re.sub(r"[^a-z0-9]", "", label.lower())


class RawRow(Mapping[str, str]):
    """One data row keyed by normalized header label.

    Values are aligned positionally with the header; missing trailing values
    read as empty strings and surplus values are ignored. When a label
    repeats, the first column wins for key lookup, while ``cells`` keeps
    every column in order.
    """

    __slots__ = ("_keys", "_values", "_index")

    def __init__(self, keys: Sequence[str], values: Sequence[str]):
        self._keys = tuple(keys)
        self._values = tuple(
            values[i] if i < len(values) else "" for i in range(len(self._keys))
        )
        self._index: dict[str, int] = {}
        for position, key in enumerate(self._keys):
            self._index.setdefault(key, position)

    def __getitem__(self, key: str) -> str:
        return self._values[self._index[key]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"RawRow({dict(self)!r})"

    @property
    def cells(self) -> tuple[str, ...]:
        return self._values

    def cell(self, position: int) -> str:
        """Value at a column position, or empty when out of range."""
        if 0 <= position < len(self._values):
            return self._values[position]
        return ""


def lookup(row: Mapping[str, str], synonyms: Sequence[str], default: str = "") -> str:
    """Return the value of the first column matching any synonym.

    Exact label matches are tried first, in synonym order. Failing that, the
    first column (in header order) whose label contains any synonym wins.
    """
    patterns = [normalize_header(s) for s in synonyms]
    patterns = [p for p in patterns if p]

    for pattern in patterns:
        if pattern in row:
            return row[pattern]

    for key in row:
        if any(pattern in key for pattern in patterns):
            return row[key]

    return default


def has_many_values(tokens: list[str]) -> bool:
    """Generic header test: more than two non-empty fields."""
    return sum(1 for t in tokens if t) > 2


def has_name_columns(tokens: list[str]) -> bool:
    """Connections header test: a first-name-like and a last-name-like label."""
    labels = [normalize_header(t) for t in tokens]
    return (
        any("first" in label for label in labels)
        and any("last" in label for label in labels)
    )


def find_header(
    lines: Sequence[str],
    is_header: HeaderPredicate = has_many_values,
    scan_lines: int = DEFAULT_SCAN_LINES,
) -> Optional[int]:
    """Index of the first line within the scan window that looks like a header."""
    for index, line in enumerate(lines[:scan_lines]):
        if is_header(tokenize_line(line)):
            return index
    return None


def parse_table(
    text: str,
    is_header: HeaderPredicate = has_many_values,
    scan_lines: int = DEFAULT_SCAN_LINES,
) -> list[RawRow]:
    """Parse delimited text into header-keyed rows.

    Args:
        text: Full export text
        is_header: Predicate deciding whether a tokenized line is the header
        scan_lines: How many leading lines may be searched for the header

    Returns:
        Data rows following the header. Empty when the text has fewer
        than two non-blank lines.
    """
    lines = split_lines(text)
    if len(lines) < 2:
        return []

    header_index = find_header(lines, is_header, scan_lines)
    if header_index is None:
        logger.debug(f"No header found in first {scan_lines} lines, using line 0")
        header_index = 0
    else:
        logger.debug(f"Header found at line {header_index}")

    header = [normalize_header(label) for label in tokenize_line(lines[header_index])]

    rows = []
    for line in lines[header_index + 1:]:
        values = tokenize_line(line)
        if not values or (len(values) == 1 and not values[0]):
            continue
        rows.append(RawRow(header, values))

    return rows
