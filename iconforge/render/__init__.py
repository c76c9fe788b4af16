from iconforge.render.raster import composite_over, hsl_to_rgb, replace_svg_colors, rgb_to_hsl, unpremultiply
from iconforge.render.svg import SvgDocument, VectorRenderer, render_svg
from iconforge.render.symbols import (
    DirectorySymbolResolver,
    MappingSymbolResolver,
    NullSymbolResolver,
    SourceKind,
    SvgSource,
    SymbolResolver,
)

__all__ = [
    "DirectorySymbolResolver",
    "MappingSymbolResolver",
    "NullSymbolResolver",
    "SourceKind",
    "SvgDocument",
    "SvgSource",
    "SymbolResolver",
    "VectorRenderer",
    "composite_over",
    "hsl_to_rgb",
    "render_svg",
    "replace_svg_colors",
    "rgb_to_hsl",
    "unpremultiply",
]
