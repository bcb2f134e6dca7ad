from __future__ import annotations

from typing import Iterable, List, Optional

import fitz  # PyMuPDF
from PIL import Image

# ترتيب الاستبدال مهم: يجب أن تُعالج "&" أولًا حتى لا تُرمَّز الكيانات مرتين.
_XML_ENTITIES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

WATERMARK_COLOR = "#6b7280"


def escape_xml(text: str) -> str:
    """ترميز المحارف الخاصة في XML قبل تضمين النص داخل SVG."""
    for raw, entity in _XML_ENTITIES:
        text = text.replace(raw, entity)
    return text


def resolve_watermark_text(seller_name: Optional[str], fallback: str) -> str:
    """اسم البائع إن وُجد، وإلا النص الافتراضي للمنصة."""
    if seller_name and seller_name.strip():
        return seller_name.strip()
    return fallback


def build_watermark_svg(
    text: str,
    width: int,
    height: int,
    angle: float = -30,
) -> str:
    """
    بناء طبقة SVG تحتوي النص مكررًا على كامل الإطار بزاوية مائلة.

    Args:
        text: نص العلامة المائية (غير مُرمَّز، يتم ترميزه هنا).
        width: عرض الإطار بالبكسل.
        height: ارتفاع الإطار بالبكسل.
        angle: زاوية الدوران بالدرجات.
    """
    escaped = escape_xml(text)
    font_size = max(12, int(min(width, height) / 18))
    step_x = max(font_size * len(text) * 0.6 + font_size * 3, font_size * 6)
    step_y = font_size * 4

    elements: List[str] = []
    for row, y in enumerate(_frange(-height * 0.5, height * 1.5, step_y)):
        offset = (step_x / 2) if row % 2 else 0
        for x in _frange(-width * 0.5 + offset, width * 1.5, step_x):
            elements.append(
                f'<text x="{x:.1f}" y="{y:.1f}" '
                f'transform="rotate({angle:g} {x:.1f} {y:.1f})" '
                f'font-family="Helvetica, Arial, sans-serif" font-size="{font_size}" '
                f'font-weight="bold" fill="{WATERMARK_COLOR}">'
                f"{escaped}</text>"
            )

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        + "".join(elements)
        + "</svg>"
    )


def render_overlay(svg: str, width: int, height: int, opacity: float = 1.0) -> Image.Image:
    """
    تحويل طبقة SVG إلى صورة RGBA شفافة بنفس أبعاد الإطار.

    تُطبَّق الشفافية على قناة ألفا هنا لأن MuPDF يتجاهل fill-opacity في SVG.
    """
    with fitz.open(stream=svg.encode("utf-8"), filetype="svg") as document:
        page = document.load_page(0)
        matrix = fitz.Matrix(width / page.rect.width, height / page.rect.height)
        pixmap = page.get_pixmap(matrix=matrix, alpha=True)
        # عينات MuPDF ذات قناة ألفا مضروبة مسبقًا (premultiplied)
        overlay = Image.frombytes("RGBA", (pixmap.width, pixmap.height), pixmap.samples, "raw", "RGBa")

    if overlay.size != (width, height):
        overlay = overlay.resize((width, height))
    if opacity < 1:
        overlay.putalpha(overlay.getchannel("A").point(lambda alpha: round(alpha * opacity)))
    return overlay


def apply_watermark(image: Image.Image, svg: str, opacity: float = 1.0) -> Image.Image:
    """دمج طبقة العلامة المائية فوق الصورة (وضع over)."""
    base = image.convert("RGBA")
    overlay = render_overlay(svg, base.width, base.height, opacity)
    return Image.alpha_composite(base, overlay)


def _frange(start: float, stop: float, step: float) -> Iterable[float]:
    value = start
    while value < stop:
        yield value
        value += step
