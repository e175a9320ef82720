from __future__ import annotations

from dataclasses import dataclass
import os


DEFAULT_MAIN_LINE_MARKER = "手数"
DEFAULT_VARIATION_MARKER = "変化"
DEFAULT_ENCODING = "cp932"


def _int_env(name: str, default: int, *, min_value: int, max_value: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(min_value, min(max_value, value))


def _str_env(name: str, default: str) -> str:
    raw = (os.environ.get(name) or "").strip()
    return raw or default


@dataclass(frozen=True)
class ParserConfig:
    """Section markers and the fixed-width move-number column of a KIF file.

    ``number_from``/``number_to`` are character offsets: the default picks
    the three characters after the first one, e.g. ``"  1"`` from ``"   1 ７六歩(77)"``.
    """

    main_line_marker: str = DEFAULT_MAIN_LINE_MARKER
    variation_marker: str = DEFAULT_VARIATION_MARKER
    number_from: int = 1
    number_to: int = 4

    def __post_init__(self) -> None:
        if not self.main_line_marker or not self.variation_marker:
            raise ValueError("section markers must be non-empty")
        if self.main_line_marker == self.variation_marker:
            raise ValueError("main line and variation markers must differ")
        if not (0 <= self.number_from < self.number_to):
            raise ValueError(
                f"invalid move number column [{self.number_from}, {self.number_to})"
            )

    @classmethod
    def from_env(cls) -> "ParserConfig":
        number_from = _int_env("KIFUTREE_NUMBER_FROM", 1, min_value=0, max_value=64)
        number_to = _int_env("KIFUTREE_NUMBER_TO", 4, min_value=1, max_value=65)
        if number_to <= number_from:
            number_from, number_to = 1, 4
        return cls(
            main_line_marker=_str_env("KIFUTREE_MAIN_LINE_MARKER", DEFAULT_MAIN_LINE_MARKER),
            variation_marker=_str_env("KIFUTREE_VARIATION_MARKER", DEFAULT_VARIATION_MARKER),
            number_from=number_from,
            number_to=number_to,
        )


@dataclass(frozen=True)
class ServiceSettings:
    max_stored: int = 64
    default_encoding: str = DEFAULT_ENCODING
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "warning"
    reload: bool = False

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        return cls(
            max_stored=_int_env("KIFUTREE_MAX_STORED", 64, min_value=1, max_value=4096),
            default_encoding=_str_env("KIFUTREE_DEFAULT_ENCODING", DEFAULT_ENCODING),
            host=_str_env("KIFUTREE_HOST", "127.0.0.1"),
            port=_int_env("KIFUTREE_PORT", 8765, min_value=1, max_value=65535),
            log_level=_str_env("KIFUTREE_LOGLEVEL", "warning").lower(),
            reload=_str_env("KIFUTREE_RELOAD", "").lower() in {"1", "true", "yes", "on"},
        )
