"""Text helpers used across the server: splitting, locating, padding and
line handling with the exact edge-case behaviour the protocol code relies on.
"""

from __future__ import annotations

from collections.abc import Iterator

__all__ = [
    "split_text",
    "split_text_reverse",
    "locate_text",
    "locate_text_reverse",
    "locate_chars",
    "replace_text",
    "compare",
    "lpad",
    "rpad",
    "contains_space",
    "all_space",
    "contains_unprintable",
    "replace_unprintable",
    "iter_lines",
    "contains_line",
    "alloc_alt_term",
    "left",
    "right",
    "mid_to_end",
    "char_at",
]

_SPACE_CHARS = frozenset(" \t\n\v\f\r")


def _is_space(char: str) -> bool:
    return char in _SPACE_CHARS


def _is_print(char: str) -> bool:
    """Whether a character is safe to print: control characters never are."""
    code = ord(char)
    if code <= 31 or code == 127:
        return False
    if 128 <= code <= 159:
        return False
    return True


def locate_text(value: str, text: str) -> int | None:
    """Index of the first occurrence of ``text`` in ``value``, or None.

    An empty search text is never found.
    """
    if not text or len(text) > len(value):
        return None
    index = value.find(text)
    return None if index < 0 else index


def locate_text_reverse(value: str, text: str) -> int | None:
    """Index of the last occurrence of ``text`` in ``value``, or None."""
    if not text or len(text) > len(value):
        return None
    index = value.rfind(text)
    return None if index < 0 else index


def locate_chars(value: str, chars: str) -> tuple[int, str] | None:
    """Find the first character of ``value`` that is one of ``chars``.

    Returns ``(index, char)`` or None when no such character exists.
    """
    wanted = set(chars)
    for index, char in enumerate(value):
        if char in wanted:
            return index, char
    return None


def _split(value: str, sep: str, reverse: bool) -> tuple[str, str]:
    index = locate_text_reverse(value, sep) if reverse else locate_text(value, sep)
    if index is None:
        return value, ""
    return value[:index], value[index + len(sep):]


def split_text(value: str, sep: str) -> tuple[str, str]:
    """Split at the first ``sep``: returns ``(left, right)``.

    When ``sep`` is absent the whole value is returned as the left part and
    the right part is empty.
    """
    return _split(value, sep, reverse=False)


def split_text_reverse(value: str, sep: str) -> tuple[str, str]:
    """Split at the last ``sep``: returns ``(left, right)``."""
    return _split(value, sep, reverse=True)


def replace_text(value: str, old: str, new: str) -> str:
    """Replace every non-overlapping ``old`` with ``new``, left to right.

    An empty ``old`` matches nothing, so the value comes back unchanged.
    """
    if not old:
        return value
    return value.replace(old, new)


def compare(first: str, second: str) -> int:
    """Three-way comparison: negative, zero or positive.

    Characters are compared in order; if one value is a prefix of the
    other, the longer one is the greater.
    """
    for a, b in zip(first, second):
        if a != b:
            return ord(a) - ord(b)
    return len(first) - len(second)


def rpad(value: str, width: int) -> str:
    """Pad with spaces on the right up to ``width`` characters."""
    return value.ljust(width, " ")


def lpad(value: str, width: int) -> str:
    """Pad with spaces on the left up to ``width`` characters."""
    return value.rjust(width, " ")


def contains_space(value: str) -> bool:
    """Whether any character is whitespace."""
    return any(_is_space(char) for char in value)


def all_space(value: str) -> bool:
    """Whether every character is whitespace (true for the empty string)."""
    return all(_is_space(char) for char in value)


def contains_unprintable(value: str) -> bool:
    """Whether any character is a control character."""
    return not all(_is_print(char) for char in value)


def replace_unprintable(value: str, new_char: str) -> str:
    """Replace every control character with ``new_char``."""
    return "".join(char if _is_print(char) else new_char for char in value)


def iter_lines(value: str) -> Iterator[str]:
    """Yield the ``\\n``-delimited lines of ``value`` without terminators.

    A trailing newline does not produce an extra empty line.
    """
    pos = 0
    length = len(value)
    while pos < length:
        end = value.find("\n", pos)
        if end < 0:
            yield value[pos:]
            return
        yield value[pos:end]
        pos = end + 1


def contains_line(value: str, line: str) -> bool:
    """Whether ``value`` holds ``line`` as one of its whole lines."""
    return any(current == line for current in iter_lines(value))


def alloc_alt_term(value: str, term: str) -> str:
    """Return the text of ``value`` up to, not including, ``term``.

    Raises ValueError when the terminator does not occur.
    """
    index = value.find(term) if term else -1
    if index < 0:
        raise ValueError("terminator not found")
    return value[:index]


def left(value: str, count: int) -> str:
    """The first ``count`` characters; ``count`` may not exceed the length."""
    if count < 0 or count > len(value):
        raise ValueError("count out of range in left")
    return value[:count]


def right(value: str, count: int) -> str:
    """The last ``count`` characters; ``count`` may not exceed the length."""
    if count < 0 or count > len(value):
        raise ValueError("count out of range in right")
    return value[len(value) - count:]


def mid_to_end(value: str, index: int) -> str:
    """Everything from ``index`` onward; ``index`` may equal the length."""
    if index < 0 or index > len(value):
        raise ValueError("index out of range in mid_to_end")
    return value[index:]


def char_at(value: str, index: int) -> str:
    """The character at ``index``; raises IndexError when out of range."""
    if index < 0 or index >= len(value):
        raise IndexError("index out of range in char_at")
    return value[index]