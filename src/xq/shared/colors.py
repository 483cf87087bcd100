"""Color palettes for formatted output.

The color switch is a value handed to each formatter instead of a process
wide flag, so concurrent formatting passes never race on it.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Optional, TextIO

from rich.color import ColorSystem
from rich.console import Console
from rich.style import Style


class ColorMode(Enum):
    """How the caller wants colors decided."""

    DEFAULT = auto()    # Colorize only when writing to a terminal
    FORCED = auto()     # Always colorize
    DISABLED = auto()   # Never colorize


@dataclass(frozen=True)
class Palette:
    """Renders output fragments in the xq color scheme.

    Markup uses yellow tags, green attribute values and bright blue comments.
    JSON reuses the same three colors for delimiters, values and keys.
    """

    enabled: bool = False

    TAG_STYLE: ClassVar[Style] = Style(color="yellow")
    ATTR_STYLE: ClassVar[Style] = Style(color="green")
    COMMENT_STYLE: ClassVar[Style] = Style(color="bright_blue")

    def _render(self, style: Style, text: str) -> str:
        if not self.enabled or not text:
            return text
        return style.render(text, color_system=ColorSystem.STANDARD)

    def tag(self, text: str) -> str:
        return self._render(self.TAG_STYLE, text)

    def attr(self, text: str) -> str:
        return self._render(self.ATTR_STYLE, text)

    def comment(self, text: str) -> str:
        return self._render(self.COMMENT_STYLE, text)

    def key(self, text: str) -> str:
        """JSON object key."""
        return self._render(self.COMMENT_STYLE, text)

    def value(self, text: str) -> str:
        """JSON scalar value."""
        return self._render(self.ATTR_STYLE, text)

    @classmethod
    def plain(cls) -> "Palette":
        return cls(enabled=False)

    @classmethod
    def colored(cls) -> "Palette":
        return cls(enabled=True)


def resolve_palette(mode: ColorMode, stream: Optional[TextIO] = None) -> Palette:
    """Turn a color mode into a concrete palette for one destination.

    Args:
        mode: Requested color mode
        stream: Destination stream consulted in DEFAULT mode

    Returns:
        Palette with colors enabled or disabled
    """
    if mode is ColorMode.FORCED:
        return Palette.colored()
    if mode is ColorMode.DISABLED or stream is None:
        return Palette.plain()

    console = Console(file=stream)
    enabled = (
        console.is_terminal
        and console.color_system is not None
        and not console.no_color
    )
    return Palette(enabled=enabled)
