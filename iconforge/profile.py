"""Serializable customization profile for moving settings between processes.

A profile is plain data: one optional settings record per layer plus its
enabled flag. It carries no cache or version state.

    profile = CustomizationProfile().with_hue_rotation(HueRotationSettings(degrees=180.0))
    restored = CustomizationProfile.from_json(profile.to_json())
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
import math
from typing import Any, Optional

from iconforge.layers.overlay import OverlayPosition
from iconforge.render.symbols import SourceKind, SvgSource


class ProfileError(ValueError):
    pass


@dataclass(frozen=True)
class SerializableSvgSource:
    svg_data: Optional[str] = None
    emoji: Optional[str] = None

    @classmethod
    def from_svg(cls, svg: str) -> "SerializableSvgSource":
        return cls(svg_data=svg)

    @classmethod
    def from_emoji(cls, emoji: str) -> "SerializableSvgSource":
        return cls(emoji=emoji)

    @classmethod
    def from_source(cls, source: SvgSource) -> "SerializableSvgSource":
        if source.kind is SourceKind.EMOJI:
            return cls.from_emoji(source.value)
        return cls.from_svg(source.value)

    def to_source(self) -> SvgSource:
        if self.emoji is not None:
            return SvgSource(SourceKind.EMOJI, self.emoji)
        return SvgSource.from_svg(self.svg_data or "")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.svg_data is not None:
            out["svgData"] = self.svg_data
        if self.emoji is not None:
            out["emoji"] = self.emoji
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any], where: str) -> "SerializableSvgSource":
        return cls(
            svg_data=_optional_str(raw.get("svgData"), f"{where}.svgData"),
            emoji=_optional_str(raw.get("emoji"), f"{where}.emoji"),
        )


@dataclass(frozen=True)
class HueRotationSettings:
    degrees: float
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"degrees": self.degrees, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, raw: Any) -> "HueRotationSettings":
        raw = _require_object(raw, "hueRotation")
        return cls(
            degrees=_require_number(raw.get("degrees"), "hueRotation.degrees"),
            enabled=_optional_bool(raw.get("enabled"), "hueRotation.enabled"),
        )


@dataclass(frozen=True)
class DecalSettings:
    source: SerializableSvgSource
    scale: float
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {**self.source.to_dict(), "scale": self.scale, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, raw: Any) -> "DecalSettings":
        raw = _require_object(raw, "decal")
        return cls(
            source=SerializableSvgSource.from_dict(raw, "decal"),
            scale=_require_number(raw.get("scale"), "decal.scale"),
            enabled=_optional_bool(raw.get("enabled"), "decal.enabled"),
        )


@dataclass(frozen=True)
class OverlaySettings:
    source: SerializableSvgSource
    position: OverlayPosition
    scale: float
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.source.to_dict(),
            "position": self.position.value,
            "scale": self.scale,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "OverlaySettings":
        raw = _require_object(raw, "overlay")
        position = raw.get("position")
        try:
            parsed_position = OverlayPosition(position)
        except ValueError:
            choices = ", ".join(p.value for p in OverlayPosition)
            raise ProfileError(f"overlay.position must be one of: {choices}") from None
        return cls(
            source=SerializableSvgSource.from_dict(raw, "overlay"),
            position=parsed_position,
            scale=_require_number(raw.get("scale"), "overlay.scale"),
            enabled=_optional_bool(raw.get("enabled"), "overlay.enabled"),
        )


@dataclass(frozen=True)
class CustomizationProfile:
    hue_rotation: Optional[HueRotationSettings] = None
    decal: Optional[DecalSettings] = None
    overlay: Optional[OverlaySettings] = None

    def with_hue_rotation(self, settings: HueRotationSettings) -> "CustomizationProfile":
        return replace(self, hue_rotation=settings)

    def with_decal(self, settings: DecalSettings) -> "CustomizationProfile":
        return replace(self, decal=settings)

    def with_overlay(self, settings: OverlaySettings) -> "CustomizationProfile":
        return replace(self, overlay=settings)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.hue_rotation is not None:
            out["hueRotation"] = self.hue_rotation.to_dict()
        if self.decal is not None:
            out["decal"] = self.decal.to_dict()
        if self.overlay is not None:
            out["overlay"] = self.overlay.to_dict()
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> "CustomizationProfile":
        raw = _require_object(raw, "profile")
        hue = raw.get("hueRotation")
        decal = raw.get("decal")
        overlay = raw.get("overlay")
        return cls(
            hue_rotation=None if hue is None else HueRotationSettings.from_dict(hue),
            decal=None if decal is None else DecalSettings.from_dict(decal),
            overlay=None if overlay is None else OverlaySettings.from_dict(overlay),
        )

    def to_json(self, *, pretty: bool = False) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "CustomizationProfile":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProfileError(f"invalid profile JSON: {exc}") from exc
        return cls.from_dict(raw)


def _require_object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ProfileError(f"{where} must be an object")
    return value


def _require_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProfileError(f"{where} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ProfileError(f"{where} must be finite")
    return number


def _optional_bool(value: Any, where: str) -> bool:
    if value is None:
        return True
    if not isinstance(value, bool):
        raise ProfileError(f"{where} must be a boolean")
    return value


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProfileError(f"{where} must be a string")
    return value
