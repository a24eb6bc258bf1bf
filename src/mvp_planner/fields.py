"""
Lenient field coercion for spreadsheet records.

Records arrive as flat ``str -> str`` mappings. Nothing here raises on bad
input: absent or unparsable cells fall back to a documented default.
"""

import typing

Record = typing.Mapping[str, str]


def text(record: Record, key: str) -> str:
    """Return the trimmed cell value, or an empty string when absent."""
    value = record.get(key)
    if value is None:
        return ""
    return str(value).strip()


def to_flag(value: typing.Any) -> bool:
    """
    Spreadsheet flags are 'Y'/'N' columns:
    - True only for 'Y' (case-insensitive, surrounding whitespace ignored)
    - everything else, including None and '', is False
    """
    if value is None:
        return False
    return str(value).strip().upper() == "Y"


def to_count(value: typing.Any, default: int) -> int:
    """
    Parse a non-negative integer count.
    Falls back to `default` on empty, unparsable or negative input.
    Whole floats such as "4.0" (common in Excel exports) are accepted.
    """
    if value is None:
        return default
    s = str(value).strip()
    if not s:
        return default
    try:
        count = int(s)
    except ValueError:
        try:
            as_float = float(s)
        except ValueError:
            return default
        if not as_float.is_integer():
            return default
        count = int(as_float)
    return count if count >= 0 else default


def split_list(value: typing.Any) -> list[str]:
    """Split a comma-delimited cell into trimmed, non-empty tokens (order kept)."""
    if value is None:
        return []
    return [token.strip() for token in str(value).split(",") if token.strip()]
