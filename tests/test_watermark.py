"""
Tests for the watermark overlay
"""
from PIL import Image

from app.services.watermark import (
    apply_watermark,
    build_watermark_svg,
    escape_xml,
    render_overlay,
    resolve_watermark_text,
)


class TestEscapeXml:

    def test_escapes_all_entities(self):
        assert escape_xml("""<a href="x">'&'</a>""") == (
            "&lt;a href=&quot;x&quot;&gt;&apos;&amp;&apos;&lt;/a&gt;"
        )

    def test_ampersand_is_not_double_escaped(self):
        assert escape_xml("<") == "&lt;"
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_plain_text_is_unchanged(self):
        assert escape_xml("Frau Müller") == "Frau Müller"


class TestResolveWatermarkText:

    def test_uses_seller_name(self):
        assert resolve_watermark_text("Test Seller", "currico.ch") == "Test Seller"

    def test_falls_back_when_missing_or_blank(self):
        assert resolve_watermark_text(None, "currico.ch") == "currico.ch"
        assert resolve_watermark_text("", "currico.ch") == "currico.ch"
        assert resolve_watermark_text("   ", "example.org") == "example.org"


class TestBuildWatermarkSvg:

    def test_contains_text_and_rotation(self):
        svg = build_watermark_svg("Test Seller", 800, 600)
        assert svg.startswith("<svg")
        assert "Test Seller" in svg
        assert "rotate(-30" in svg
        assert 'width="800"' in svg and 'height="600"' in svg

    def test_text_is_tiled(self):
        svg = build_watermark_svg("currico.ch", 800, 1131)
        assert svg.count("<text") > 4

    def test_escapes_seller_name(self):
        svg = build_watermark_svg('Test <&> "Seller"', 400, 400)
        assert "Test &lt;&amp;&gt; &quot;Seller&quot;" in svg
        assert "<&>" not in svg

    def test_angle_is_configurable(self):
        svg = build_watermark_svg("x", 200, 200, angle=-45)
        assert "rotate(-45" in svg

    def test_font_scales_with_frame(self):
        small = build_watermark_svg("x", 180, 180)
        large = build_watermark_svg("x", 900, 900)
        assert 'font-size="12"' in small
        assert 'font-size="50"' in large


class TestOverlay:

    def test_render_overlay_matches_frame(self):
        svg = build_watermark_svg("Test Seller", 320, 240)
        overlay = render_overlay(svg, 320, 240)
        assert overlay.mode == "RGBA"
        assert overlay.size == (320, 240)

    def test_apply_watermark_keeps_size(self):
        image = Image.new("RGB", (300, 200), (255, 255, 255))
        result = apply_watermark(image, build_watermark_svg("currico.ch", 300, 200))
        assert result.size == (300, 200)
        assert result.mode == "RGBA"

    def test_overlay_is_drawn_at_low_opacity(self):
        svg = build_watermark_svg("Test Seller", 800, 600)
        alpha = render_overlay(svg, 800, 600, opacity=0.18).getchannel("A")
        _, high = alpha.getextrema()

        assert high > 0
        assert high <= round(0.18 * 255) + 1

    def test_full_opacity_overlay_is_opaque(self):
        svg = build_watermark_svg("Test Seller", 800, 600)
        _, high = render_overlay(svg, 800, 600).getchannel("A").getextrema()

        assert high > 200

    def test_watermarked_pixels_stay_close_to_background(self):
        image = Image.new("RGB", (400, 300), (255, 255, 255))
        result = apply_watermark(image, build_watermark_svg("currico.ch", 400, 300), opacity=0.18)

        darkest = min(low for low, _ in result.convert("RGB").getextrema())
        assert darkest < 255
        assert 255 - darkest <= round((255 - 107) * 0.18) + 2
