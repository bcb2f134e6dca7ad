from __future__ import annotations

import asyncio
import re
import time
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import fitz  # PyMuPDF

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging

logger = configure_logging()

OUTPUT_PREFIX = "page"
_PAGE_NUMBER = re.compile(rf"^{OUTPUT_PREFIX}-(\d+)\.png$")


@dataclass
class RasterResult:
    """نتيجة تحويل صفحات PDF إلى صور: إما صفحات مرتبة أو رسالة خطأ."""

    pages: List[bytes] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PdfRasterizer:
    """تحويل صفحات PDF إلى صور PNG عبر pdftoppm (أو PyMuPDF داخل العملية)."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    async def rasterize(
        self,
        pdf_path: Path,
        output_dir: Path,
        first_page: int = 1,
        last_page: int = 1,
    ) -> RasterResult:
        if first_page < 1 or last_page < first_page:
            return RasterResult(error=f"invalid page range {first_page}-{last_page}")

        if self.settings.pdf_rasterizer == "pymupdf":
            # الخيط العامل يستمر بعد انتهاء wait_for؛ العرض يتوقف عند تجاوز المهلة بين الصفحات
            deadline = time.monotonic() + self.settings.pdf_render_timeout
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._render_with_pymupdf, pdf_path, first_page, last_page, deadline),
                    timeout=self.settings.pdf_render_timeout,
                )
            except asyncio.TimeoutError:
                return RasterResult(error="PyMuPDF rendering timed out")

        return await self._render_with_pdftoppm(pdf_path, output_dir, first_page, last_page)

    # ------------------------------------------------------------------
    # pdftoppm (poppler-utils)
    # ------------------------------------------------------------------
    async def _render_with_pdftoppm(
        self,
        pdf_path: Path,
        output_dir: Path,
        first_page: int,
        last_page: int,
    ) -> RasterResult:
        command = [
            self.settings.pdftoppm_path,
            "-png",
            "-f",
            str(first_page),
            "-l",
            str(last_page),
            "-r",
            str(self.settings.pdf_render_dpi),
            str(pdf_path),
            str(output_dir / OUTPUT_PREFIX),
        ]

        logger.debug("تشغيل pdftoppm: %s", " ".join(command))
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return RasterResult(error=f"pdftoppm not available: {exc}")

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.settings.pdf_render_timeout
            )
        except asyncio.TimeoutError:
            return RasterResult(
                error=f"pdftoppm timed out after {self.settings.pdf_render_timeout:g}s"
            )
        finally:
            # المهلة أو إلغاء المهمة: لا تُترك العملية تعمل بعد حذف المجلد المؤقت
            if process.returncode is None:
                with suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        if process.returncode != 0:
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            return RasterResult(error=f"pdftoppm exited with {process.returncode}: {message}")

        pages = collect_pages(output_dir)
        if not pages:
            return RasterResult(error="pdftoppm produced no pages")
        return RasterResult(pages=pages)

    # ------------------------------------------------------------------
    # PyMuPDF
    # ------------------------------------------------------------------
    def _render_with_pymupdf(
        self,
        pdf_path: Path,
        first_page: int,
        last_page: int,
        deadline: Optional[float] = None,
    ) -> RasterResult:
        zoom = self.settings.pdf_render_dpi / 72
        matrix = fitz.Matrix(zoom, zoom)
        pages: List[bytes] = []

        try:
            with fitz.open(pdf_path) as document:
                last_page = min(last_page, document.page_count)
                for number in range(first_page - 1, last_page):
                    if deadline is not None and time.monotonic() > deadline:
                        return RasterResult(error="PyMuPDF rendering timed out")
                    pixmap = document.load_page(number).get_pixmap(matrix=matrix, alpha=False)
                    pages.append(pixmap.tobytes("png"))
        except Exception as exc:  # PyMuPDF يرفع أنواعًا متعددة للملفات التالفة
            return RasterResult(error=f"PyMuPDF failed: {exc}")

        if not pages:
            return RasterResult(error="PyMuPDF produced no pages")
        return RasterResult(pages=pages)


def collect_pages(output_dir: Path) -> List[bytes]:
    """
    قراءة ملفات الصفحات الناتجة مرتبة حسب رقم الصفحة.

    يضيف pdftoppm أصفارًا بادئة حسب عدد صفحات المستند (page-1.png أو page-01.png)،
    لذلك يتم الترتيب بالقيمة العددية لا بالاسم.
    """
    numbered = []
    for path in output_dir.iterdir():
        match = _PAGE_NUMBER.match(path.name)
        if match:
            numbered.append((int(match.group(1)), path))
    return [path.read_bytes() for _, path in sorted(numbered)]
