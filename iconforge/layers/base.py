"""Generic layer container: configuration, enabled flag, version and cache.

Each configuration type implements :class:`LayerEffect`, which says how the
layer renders itself, what it publishes for downstream layers, and which
upstream layers its cached pixels depend on. :class:`Layer` holds everything
else and is shared by all layer kinds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import ClassVar, Generic, Optional, Protocol, TypeVar

from iconforge.icon import CacheKey, IconImage

from .context import RenderContext


LOGGER = logging.getLogger(__name__)

_VERSION_MASK = (1 << 64) - 1


def _bump(version: int) -> int:
    return (version + 1) & _VERSION_MASK


@dataclass(frozen=True)
class LayerVersions:
    """Snapshot of every layer's version at the start of a render pass."""

    hue: int
    decal: int
    overlay: int


@dataclass(frozen=True)
class DependencyVersion:
    """Upstream state a cached image was rendered against.

    Holds the upstream versions themselves rather than a sum of them, so two
    different upstream states never compare equal.
    """

    versions: tuple[int, ...] = ()

    NONE: ClassVar["DependencyVersion"]

    @classmethod
    def from_version(cls, version: int) -> "DependencyVersion":
        return cls((version,))

    @classmethod
    def combine(cls, versions: tuple[int, ...] | list[int]) -> "DependencyVersion":
        return cls(tuple(versions))


DependencyVersion.NONE = DependencyVersion()


class LayerEffect(Protocol):
    """What a layer configuration must provide to run inside a :class:`Layer`."""

    def differs_from(self, other: "LayerEffect") -> bool:
        """True if ``other`` would render differently from ``self``."""
        ...

    @classmethod
    def dependencies(cls, versions: LayerVersions) -> DependencyVersion:
        """Upstream versions this layer's cached pixels depend on."""
        ...

    def transform(self, ctx: RenderContext) -> None:
        """Replace ``ctx.image`` with this layer's output."""
        ...

    def emit(self, ctx: RenderContext) -> None:
        """Publish properties for downstream layers; runs after transform and on cache hits."""
        ...


C = TypeVar("C", bound=LayerEffect)


@dataclass
class Layer(Generic[C]):
    """One pipeline step. Config survives toggling; any change bumps the version."""

    name: str = "layer"
    _config: Optional[C] = None
    _enabled: bool = True
    _version: int = 0
    _cache: dict[CacheKey, tuple[IconImage, DependencyVersion]] = field(default_factory=dict, repr=False)

    @property
    def config(self) -> Optional[C]:
        return self._config

    @property
    def version(self) -> int:
        return self._version

    def has_config(self) -> bool:
        return self._config is not None

    def is_enabled(self) -> bool:
        return self._enabled

    def is_active(self) -> bool:
        return self._enabled and self._config is not None

    def cached_keys(self) -> list[CacheKey]:
        return list(self._cache)

    def set_enabled(self, enabled: bool) -> bool:
        if self._enabled == enabled:
            return False
        self._enabled = enabled
        self.invalidate()
        return True

    def set_config(self, config: Optional[C]) -> bool:
        old = self._config
        if old is None and config is None:
            return False
        if old is not None and config is not None and not old.differs_from(config):
            return False
        self._config = config
        self.invalidate()
        return True

    def invalidate(self) -> None:
        self._version = _bump(self._version)
        self._cache.clear()

    def get_cached(self, key: CacheKey, deps: DependencyVersion) -> Optional[IconImage]:
        entry = self._cache.get(key)
        if entry is None or entry[1] != deps:
            return None
        return entry[0]

    def store(self, key: CacheKey, image: IconImage, deps: DependencyVersion) -> None:
        self._cache[key] = (image, deps)

    def apply(self, ctx: RenderContext, key: CacheKey, versions: LayerVersions) -> None:
        config = self._config
        if config is None or not self._enabled:
            LOGGER.debug("%s inactive, skipped", self.name)
            return
        deps = type(config).dependencies(versions)
        cached = self.get_cached(key, deps)
        if cached is not None:
            LOGGER.debug("%s cache hit for %s", self.name, key)
            ctx.image = cached
            # Properties are not cached; downstream layers need them fresh.
            config.emit(ctx)
            return
        LOGGER.debug("%s cache miss for %s", self.name, key)
        config.transform(ctx)
        config.emit(ctx)
        self.store(key, ctx.image, deps)


@dataclass
class CompositeLayer:
    """Cache of fully rendered images; no configuration of its own."""

    _version: int = 0
    _cache: dict[CacheKey, tuple[IconImage, DependencyVersion]] = field(default_factory=dict, repr=False)

    @property
    def version(self) -> int:
        return self._version

    def invalidate(self) -> None:
        self._version = _bump(self._version)
        self._cache.clear()

    def get_cached(self, key: CacheKey, deps: DependencyVersion) -> Optional[IconImage]:
        entry = self._cache.get(key)
        if entry is None or entry[1] != deps:
            return None
        return entry[0]

    def store(self, key: CacheKey, image: IconImage, deps: DependencyVersion) -> None:
        self._cache[key] = (image, deps)

    def cached_keys(self) -> list[CacheKey]:
        return list(self._cache)
