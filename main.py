from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from iconforge import (
    CustomizationProfile,
    DecalSettings,
    HueRotationSettings,
    IconCustomizer,
    IconImage,
    IconSet,
    OverlayPosition,
    OverlaySettings,
    ProfileError,
    RenderSettings,
    SerializableSvgSource,
)


LOGGER = logging.getLogger("iconforge.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iconforge")
    parser.add_argument("--log-level", default=None, help="Logging level. Default: $ICONFORGE_LOG_LEVEL or WARNING.")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render base PNGs through a customization profile.")
    render.add_argument("bases", nargs="+", type=Path, help="Base images; an @2x style suffix sets the scale.")
    render.add_argument("--profile", type=Path, required=True, help="Profile JSON file.")
    render.add_argument("--out", type=Path, required=True, help="Output directory.")
    render.add_argument(
        "--size",
        type=float,
        default=None,
        help="Render only the base closest to this logical size. Default: render every base.",
    )

    export = sub.add_parser("export-profile", help="Print a profile JSON built from flags.")
    export.add_argument("--hue", type=float, default=None, help="Hue rotation in degrees.")
    export.add_argument("--decal-svg", type=Path, default=None)
    export.add_argument("--decal-scale", type=float, default=0.5)
    overlay = export.add_mutually_exclusive_group()
    overlay.add_argument("--overlay-svg", type=Path, default=None)
    overlay.add_argument("--overlay-emoji", default=None)
    export.add_argument(
        "--overlay-position",
        choices=[p.value for p in OverlayPosition],
        default=OverlayPosition.BOTTOM_RIGHT.value,
    )
    export.add_argument("--overlay-scale", type=float, default=0.5)
    export.add_argument("--pretty", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = RenderSettings.from_env()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "render":
        return _run_render(args, settings)
    if args.command == "export-profile":
        return _run_export(args)
    raise AssertionError(f"unhandled command {args.command!r}")


def _run_render(args: argparse.Namespace, settings: RenderSettings) -> int:
    try:
        profile = CustomizationProfile.from_json(args.profile.read_text(encoding="utf-8"))
    except (OSError, ProfileError) as exc:
        print(f"iconforge: cannot load profile: {exc}", file=sys.stderr)
        return 2

    try:
        bases = IconSet.from_images(IconImage.from_file(path) for path in args.bases)
    except (OSError, ValueError) as exc:
        print(f"iconforge: cannot load base image: {exc}", file=sys.stderr)
        return 2
    customizer = IconCustomizer.from_settings(bases, settings)
    customizer.apply_profile(profile)

    if args.size is not None:
        rendered = customizer.render(args.size)
        outputs = [] if rendered is None else [rendered]
    else:
        outputs = list(customizer.render_all())

    args.out.mkdir(parents=True, exist_ok=True)
    for image in outputs:
        size = image.dimensions()
        logical_w, _ = image.logical_size()
        suffix = "" if image.scale == 1.0 else f"@{image.scale:g}x"
        path = args.out / f"icon_{logical_w:g}{suffix}.png"
        image.to_pil().save(path)
        LOGGER.info("wrote %s (%dx%d)", path, size.width, size.height)
    print(f"rendered {len(outputs)} image(s) into {args.out}")
    return 0


def _run_export(args: argparse.Namespace) -> int:
    profile = CustomizationProfile()
    if args.hue is not None:
        profile = profile.with_hue_rotation(HueRotationSettings(degrees=args.hue))
    if args.decal_svg is not None:
        profile = profile.with_decal(
            DecalSettings(
                source=SerializableSvgSource.from_svg(args.decal_svg.read_text(encoding="utf-8")),
                scale=args.decal_scale,
            )
        )
    overlay_source = None
    if args.overlay_svg is not None:
        overlay_source = SerializableSvgSource.from_svg(args.overlay_svg.read_text(encoding="utf-8"))
    elif args.overlay_emoji is not None:
        overlay_source = SerializableSvgSource.from_emoji(args.overlay_emoji)
    if overlay_source is not None:
        profile = profile.with_overlay(
            OverlaySettings(
                source=overlay_source,
                position=OverlayPosition(args.overlay_position),
                scale=args.overlay_scale,
            )
        )
    print(profile.to_json(pretty=args.pretty))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
