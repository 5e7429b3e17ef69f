"""Process title formatting within a fixed amount of title space.

The title area is the memory that originally held the program's arguments
and environment. A title is the optional prefix, then the text, preceded by
the program name, and it is cut short to fit the area with room left for a
terminating NUL. When the area is very small no title is shown at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

__all__ = ["ProcTitle", "PROGRAM_PREFIX", "MIN_TITLE_SPACE"]

PROGRAM_PREFIX = "secftpd: "
MIN_TITLE_SPACE = 32


class ProcTitle:
    """Builds process titles for a title area of ``space`` bytes."""

    def __init__(self, space: int) -> None:
        if space < 0:
            raise ValueError("title space cannot be negative")
        self.space = space
        self._prefix = ""

    @classmethod
    def from_argv(
        cls, argv: Iterable[str], environ: Mapping[str, str] | None = None
    ) -> ProcTitle:
        """Size the title area from the arguments and environment it reuses."""
        args = list(argv)
        if not args:
            raise ValueError("no argv[0] for the process title")
        entries = args + [f"{key}={value}" for key, value in (environ or {}).items()]
        return cls(sum(len(entry) + 1 for entry in entries))

    @property
    def prefix(self) -> str:
        return self._prefix

    def set_prefix(self, prefix: str) -> None:
        """Set the text shown before every title, such as a client address."""
        self._prefix = prefix

    def format(self, text: str) -> str:
        """The title text: ``"<prefix>: <text>"``, or just ``text`` with no prefix."""
        if self._prefix:
            return f"{self._prefix}: {text}"
        return text

    def render(self, text: str) -> str:
        """The title as it would appear in the title area.

        Empty when the area is smaller than ``MIN_TITLE_SPACE`` bytes;
        otherwise truncated to ``space - 1`` characters.
        """
        if self.space < MIN_TITLE_SPACE:
            return ""
        title = PROGRAM_PREFIX + self.format(text)
        return title[: self.space - 1]