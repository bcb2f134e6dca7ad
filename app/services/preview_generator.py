from __future__ import annotations

import asyncio
import tempfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageOps

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.models.preview import PreviewKind
from app.services.rasterizer import PdfRasterizer
from app.services.watermark import apply_watermark, build_watermark_svg, resolve_watermark_text
from app.utils.file_utils import can_generate_preview, classify_mime_type

logger = configure_logging()


def fit_inside(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """أكبر أبعاد تحافظ على النسبة داخل الصندوق دون تكبير الصورة الأصلية."""
    scale = min(max_width / width, max_height / height, 1.0)
    return max(1, round(width * scale)), max(1, round(height * scale))


def read_dimensions(image: Image.Image) -> Tuple[Optional[int], Optional[int]]:
    width, height = image.size
    if not width or not height:
        return None, None
    return width, height


def encode_webp(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="WEBP", quality=quality)
    return buffer.getvalue()


class PreviewGenerator:
    """إنشاء صور معاينة مصغرة بعلامة مائية للمستندات المرفوعة (صور وPDF)."""

    def __init__(
        self,
        settings: Settings | None = None,
        rasterizer: PdfRasterizer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rasterizer = rasterizer or PdfRasterizer(self.settings)

    @property
    def bounding_box(self) -> Tuple[int, int]:
        return self.settings.preview_max_width, self.settings.preview_max_height

    # ------------------------------------------------------------------
    # الصور
    # ------------------------------------------------------------------
    def generate_image_preview(self, data: bytes, seller_name: Optional[str] = None) -> Optional[bytes]:
        """
        تصغير الصورة إلى حدود المعاينة ودمج العلامة المائية وترميزها WebP.

        Returns:
            بايتات WebP، أو None عند فشل فك الترميز أو المعالجة.
        """
        try:
            return self._render_image_preview(data, seller_name)
        except Exception:
            logger.exception("تعذر إنشاء معاينة للصورة")
            return None

    def _render_image_preview(self, data: bytes, seller_name: Optional[str]) -> bytes:
        max_width, max_height = self.bounding_box

        with Image.open(BytesIO(data)) as source:
            source.seek(0)
            image = ImageOps.exif_transpose(source).convert("RGBA")

        width, height = read_dimensions(image)
        if width and height:
            target = fit_inside(width, height, max_width, max_height)
            if target != image.size:
                image = image.resize(target, Image.Resampling.LANCZOS)
        else:
            logger.warning("أبعاد الصورة غير معروفة، سيتم استخدام أبعاد المعاينة الافتراضية")
            image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

        frame_width, frame_height = read_dimensions(image)
        if not frame_width or not frame_height:
            frame_width, frame_height = max_width, max_height

        text = resolve_watermark_text(seller_name, self.settings.watermark_text)
        svg = build_watermark_svg(
            text,
            frame_width,
            frame_height,
            angle=self.settings.watermark_angle,
        )
        watermarked = apply_watermark(image, svg, opacity=self.settings.watermark_opacity)
        return encode_webp(watermarked, quality=self.settings.preview_quality)

    # ------------------------------------------------------------------
    # ملفات PDF
    # ------------------------------------------------------------------
    async def generate_pdf_preview(self, data: bytes, seller_name: Optional[str] = None) -> Optional[bytes]:
        """معاينة الصفحة الأولى من ملف PDF، أو None إذا تعذر التحويل."""
        pages = await self._rasterize_pages(data, 1)
        if not pages:
            return None
        return await asyncio.to_thread(self.generate_image_preview, pages[0], seller_name)

    async def generate_pdf_preview_pages(
        self,
        data: bytes,
        max_pages: Optional[int] = None,
        seller_name: Optional[str] = None,
    ) -> List[bytes]:
        """
        معاينات لأول max_pages صفحات بترتيبها. الصفحة التي يفشل تحويلها تُحذف
        من النتيجة دون التأثير على بقية الصفحات، والقائمة فارغة عند الفشل الكلي.
        """
        if max_pages is None:
            max_pages = self.settings.pdf_preview_max_pages
        if max_pages < 1:
            return []

        pages = await self._rasterize_pages(data, max_pages)

        previews: List[bytes] = []
        for number, page in enumerate(pages, start=1):
            preview = await asyncio.to_thread(self.generate_image_preview, page, seller_name)
            if preview is None:
                logger.warning("تم تجاهل الصفحة %d لتعذر إنشاء معاينتها", number)
                continue
            previews.append(preview)
        return previews

    async def _rasterize_pages(self, data: bytes, page_count: int) -> List[bytes]:
        try:
            with tempfile.TemporaryDirectory(prefix="pdf-preview-", dir=self.settings.temp_dir) as workdir:
                workdir_path = Path(workdir)
                input_path = workdir_path / "input.pdf"
                input_path.write_bytes(data)

                result = await self.rasterizer.rasterize(
                    input_path, workdir_path, first_page=1, last_page=page_count
                )
        except Exception:
            logger.exception("خطأ غير متوقع أثناء تحويل ملف PDF إلى صور")
            return []

        if not result.ok:
            logger.warning("تعذر تحويل ملف PDF إلى صور، لن تُنشأ معاينة: %s", result.error)
            return []
        return result.pages

    # ------------------------------------------------------------------
    # التوجيه حسب نوع الملف
    # ------------------------------------------------------------------
    async def generate_preview(
        self,
        data: bytes,
        mime_type: str,
        seller_name: Optional[str] = None,
    ) -> Optional[bytes]:
        kind = classify_mime_type(mime_type)
        if kind is PreviewKind.pdf:
            return await self.generate_pdf_preview(data, seller_name)
        if kind is PreviewKind.image:
            return await asyncio.to_thread(self.generate_image_preview, data, seller_name)
        return None


def preview_dimensions(data: bytes) -> Tuple[Optional[int], Optional[int]]:
    """قراءة أبعاد صورة معاينة ناتجة دون فك ترميزها بالكامل."""
    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except Exception:
        logger.warning("تعذر قراءة أبعاد المعاينة")
        return None, None


# ----------------------------------------------------------------------
# واجهة مختصرة تستخدم الإعدادات الحالية
# ----------------------------------------------------------------------
def generate_image_preview(data: bytes, seller_name: Optional[str] = None) -> Optional[bytes]:
    return PreviewGenerator().generate_image_preview(data, seller_name)


async def generate_pdf_preview(data: bytes, seller_name: Optional[str] = None) -> Optional[bytes]:
    return await PreviewGenerator().generate_pdf_preview(data, seller_name)


async def generate_pdf_preview_pages(
    data: bytes,
    max_pages: Optional[int] = None,
    seller_name: Optional[str] = None,
) -> List[bytes]:
    return await PreviewGenerator().generate_pdf_preview_pages(data, max_pages, seller_name)


async def generate_preview(data: bytes, mime_type: str, seller_name: Optional[str] = None) -> Optional[bytes]:
    return await PreviewGenerator().generate_preview(data, mime_type, seller_name)


__all__ = [
    "PreviewGenerator",
    "can_generate_preview",
    "encode_webp",
    "fit_inside",
    "generate_image_preview",
    "generate_pdf_preview",
    "generate_pdf_preview_pages",
    "generate_preview",
    "preview_dimensions",
]
