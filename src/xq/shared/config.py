"""Configuration classes for xq.

``FormatOptions`` carries the validated formatting settings for one
invocation. ``XQConfig`` holds the user defaults read from the ``~/.xq``
key=value file.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xq.shared.colors import ColorMode
from xq.shared.errors import XQError
from xq.shared.logging import get_logger

MIN_INDENT_WIDTH = 0
MAX_INDENT_WIDTH = 8
DEFAULT_INDENT_WIDTH = 2
CONFIG_FILE_NAME = ".xq"

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

logger = get_logger(__name__, component="config")


class ConfigError(XQError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def parse_bool(value: str) -> bool:
    """Parse the boolean spellings accepted in the config file.

    Raises:
        ValueError: If ``value`` is not a recognised boolean word
    """
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


@dataclass(frozen=True)
class FormatOptions:
    """Validated formatting settings for one invocation."""

    indent_width: int = DEFAULT_INDENT_WIDTH
    use_tabs: bool = False
    color_mode: ColorMode = ColorMode.DEFAULT

    def __post_init__(self) -> None:
        """Validate indentation width."""
        if not MIN_INDENT_WIDTH <= self.indent_width <= MAX_INDENT_WIDTH:
            raise ConfigValidationError(
                "indent should be between 0-8 spaces",
                field_name="indent_width",
                suggestions=[f"Use a value from {MIN_INDENT_WIDTH} to {MAX_INDENT_WIDTH}",
                             "Use --tab for tab indentation"],
            )

    @property
    def indent(self) -> str:
        """Indentation unit: a tab, or ``indent_width`` spaces."""
        if self.use_tabs:
            return "\t"
        return " " * self.indent_width


@dataclass
class XQConfig:
    """User defaults loaded from the ``~/.xq`` file."""

    indent: int = DEFAULT_INDENT_WIDTH
    tab: bool = False
    no_color: bool = False
    color: bool = False
    html: bool = False
    node: bool = False

    @property
    def color_mode(self) -> ColorMode:
        if self.color:
            return ColorMode.FORCED
        if self.no_color:
            return ColorMode.DISABLED
        return ColorMode.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "XQConfig":
        """Create config from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_lines(cls, lines: List[str], source: str = "<config>") -> "XQConfig":
        """Parse ``key=value`` lines.

        Blank lines, ``#`` comments, lines without exactly one ``=``, unknown
        keys and unparsable values are skipped.
        """
        values: Dict[str, Any] = {}
        for number, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split("=")
            if len(parts) != 2:
                logger.debug(
                    "Skipping malformed config line",
                    extra={"config_source": source, "line_number": number},
                )
                continue

            key, value = parts[0].strip(), parts[1].strip()
            key = key.replace("-", "_")
            try:
                if key == "indent":
                    values[key] = int(value)
                elif key in ("tab", "no_color", "color", "html", "node"):
                    values[key] = parse_bool(value)
            except ValueError:
                logger.warning(
                    f"Ignoring invalid value for '{key}' in {source}",
                    extra={"config_source": source, "line_number": number},
                )

        return cls.from_dict(values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "XQConfig":
        """Load configuration from ``path``; a missing file yields defaults."""
        config_path = Path(path)
        if not config_path.exists():
            return cls()

        with config_path.open(encoding="utf-8") as f:
            return cls.from_lines(f.read().splitlines(), source=str(config_path))

    def format_options(self) -> FormatOptions:
        return FormatOptions(
            indent_width=self.indent,
            use_tabs=self.tab,
            color_mode=self.color_mode,
        )


def default_config_path() -> Path:
    """Location of the user config file."""
    return Path.home() / CONFIG_FILE_NAME
