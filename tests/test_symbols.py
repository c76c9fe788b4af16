from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from iconforge.render.symbols import (
    DirectorySymbolResolver,
    MappingSymbolResolver,
    NullSymbolResolver,
    SourceKind,
    SvgSource,
    twemoji_filename,
)


DUCK = "\U0001f986"
HEART = "\u2764\ufe0f"
TECHNOLOGIST = "\U0001f468\u200d\U0001f4bb"


class TwemojiNamingTests(unittest.TestCase):
    def test_single_codepoint(self) -> None:
        self.assertEqual(twemoji_filename(DUCK), "1f986")

    def test_variation_selector_dropped_without_zwj(self) -> None:
        self.assertEqual(twemoji_filename(HEART), "2764")

    def test_zwj_sequence_keeps_every_codepoint(self) -> None:
        self.assertEqual(twemoji_filename(TECHNOLOGIST), "1f468-200d-1f4bb")


class ResolverTests(unittest.TestCase):
    def test_directory_resolver_reads_and_reports_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "1f986.svg").write_text("<svg/>", encoding="utf-8")
            resolver = DirectorySymbolResolver(root)
            self.assertEqual(resolver.resolve(DUCK), "<svg/>")
            with self.assertLogs("iconforge.render.symbols", level="WARNING"):
                self.assertIsNone(resolver.resolve(HEART))

    def test_directory_resolver_memoises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            path = root / "1f986.svg"
            path.write_text("<svg/>", encoding="utf-8")
            resolver = DirectorySymbolResolver(root)
            resolver.resolve(DUCK)
            path.unlink()
            self.assertEqual(resolver.resolve(DUCK), "<svg/>")

    def test_null_and_mapping_resolvers(self) -> None:
        self.assertIsNone(NullSymbolResolver().resolve(DUCK))
        self.assertEqual(MappingSymbolResolver({DUCK: "<svg/>"}).resolve(DUCK), "<svg/>")


class SvgSourceTests(unittest.TestCase):
    def test_raw_source(self) -> None:
        source = SvgSource.from_svg("<svg></svg>")
        self.assertTrue(source.is_raw())
        self.assertFalse(source.is_emoji())
        self.assertEqual(source.resolve(NullSymbolResolver()), "<svg></svg>")
        self.assertEqual(SvgSource.coerce("<svg></svg>"), source)

    def test_from_emoji_validates_against_resolver(self) -> None:
        resolver = MappingSymbolResolver({DUCK: "<svg/>"})
        source = SvgSource.from_emoji(DUCK, resolver)
        assert source is not None
        self.assertEqual(source.kind, SourceKind.EMOJI)
        self.assertEqual(source.resolve(resolver), "<svg/>")
        self.assertIsNone(SvgSource.from_emoji(HEART, resolver))

    def test_equality_includes_kind(self) -> None:
        self.assertNotEqual(SvgSource(SourceKind.RAW, DUCK), SvgSource(SourceKind.EMOJI, DUCK))


if __name__ == "__main__":
    unittest.main()
