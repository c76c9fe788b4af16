"""Vector sources and emoji-to-markup resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Mapping, Optional, Protocol


LOGGER = logging.getLogger(__name__)

_ZWJ = 0x200D
_VS16 = 0xFE0F


class SymbolResolver(Protocol):
    """Maps a symbolic reference (an emoji) to SVG markup, or ``None``."""

    def resolve(self, symbol: str) -> Optional[str]:
        ...


class NullSymbolResolver:
    def resolve(self, symbol: str) -> Optional[str]:
        return None


@dataclass
class MappingSymbolResolver:
    symbols: Mapping[str, str] = field(default_factory=dict)

    def resolve(self, symbol: str) -> Optional[str]:
        return self.symbols.get(symbol)


@dataclass
class DirectorySymbolResolver:
    """Reads Twemoji-style ``<codepoints>.svg`` files from ``root``.

    Resolved markup is memoised per symbol; a missing file reports the symbol
    as unsupported.
    """

    root: Path
    _cache: dict[str, Optional[str]] = field(default_factory=dict, init=False, repr=False)

    def resolve(self, symbol: str) -> Optional[str]:
        if symbol in self._cache:
            return self._cache[symbol]
        markup: Optional[str] = None
        if symbol:
            path = self.root / f"{twemoji_filename(symbol)}.svg"
            try:
                markup = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                LOGGER.warning("no svg for symbol %r at %s", symbol, path)
        self._cache[symbol] = markup
        return markup


def twemoji_filename(symbol: str) -> str:
    """Twemoji file stem: lowercase hex codepoints joined by ``-``.

    U+FE0F is dropped unless the sequence contains a zero-width joiner.
    """
    codepoints = [ord(ch) for ch in symbol]
    if _ZWJ not in codepoints:
        codepoints = [cp for cp in codepoints if cp != _VS16]
    return "-".join(f"{cp:x}" for cp in codepoints)


class SourceKind(Enum):
    RAW = "raw"
    EMOJI = "emoji"


@dataclass(frozen=True)
class SvgSource:
    """Vector graphic given either as markup or as an emoji to look up."""

    kind: SourceKind
    value: str

    @classmethod
    def from_svg(cls, markup: str) -> "SvgSource":
        return cls(SourceKind.RAW, markup)

    @classmethod
    def from_emoji(cls, emoji: str, resolver: SymbolResolver) -> Optional["SvgSource"]:
        """Return an emoji source, or ``None`` if ``resolver`` does not know it."""
        if resolver.resolve(emoji) is None:
            return None
        return cls(SourceKind.EMOJI, emoji)

    @classmethod
    def coerce(cls, source: "SvgSource | str") -> "SvgSource":
        if isinstance(source, SvgSource):
            return source
        return cls.from_svg(source)

    def is_raw(self) -> bool:
        return self.kind is SourceKind.RAW

    def is_emoji(self) -> bool:
        return self.kind is SourceKind.EMOJI

    def resolve(self, resolver: SymbolResolver) -> Optional[str]:
        if self.is_raw():
            return self.value
        return resolver.resolve(self.value)
