from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from iconforge.render.symbols import DirectorySymbolResolver, NullSymbolResolver, SymbolResolver


DEFAULT_SUPERSAMPLE = 4
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class RenderSettings:
    supersample: int = DEFAULT_SUPERSAMPLE
    twemoji_dir: Path | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        *,
        supersample_env_var: str = "ICONFORGE_SUPERSAMPLE",
        twemoji_env_var: str = "ICONFORGE_TWEMOJI_DIR",
        log_level_env_var: str = "ICONFORGE_LOG_LEVEL",
    ) -> "RenderSettings":
        return cls(
            supersample=_parse_supersample(supersample_env_var),
            twemoji_dir=_parse_dir(twemoji_env_var),
            log_level=_parse_log_level(log_level_env_var),
        )

    def symbol_resolver(self) -> SymbolResolver:
        if self.twemoji_dir is None:
            return NullSymbolResolver()
        return DirectorySymbolResolver(self.twemoji_dir)


def _parse_supersample(env_var: str) -> int:
    raw = os.getenv(env_var, "").strip()
    if raw == "":
        return DEFAULT_SUPERSAMPLE
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_SUPERSAMPLE
    if value < 1:
        return DEFAULT_SUPERSAMPLE
    return value


def _parse_dir(env_var: str) -> Path | None:
    raw = os.getenv(env_var, "").strip()
    if raw == "":
        return None
    path = Path(raw).expanduser()
    if not path.is_dir():
        return None
    return path


def _parse_log_level(env_var: str) -> str:
    raw = os.getenv(env_var, DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(raw), int):
        return DEFAULT_LOG_LEVEL
    return raw
