from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from app.core.logging import configure_logging
from app.models import CapabilityResponse, PreviewCard, PreviewKind, PreviewPagesResponse, PreviewResponse
from app.services.preview_generator import PreviewGenerator, preview_dimensions
from app.storage.local import LocalStorage
from app.utils.file_utils import can_generate_preview, classify_mime_type, normalize_mime_type, resolve_mime_type

router = APIRouter(prefix="/previews", tags=["Previews"])

logger = configure_logging()


def get_storage() -> LocalStorage:
    return LocalStorage()


def get_preview_generator() -> PreviewGenerator:
    return PreviewGenerator()


def _card(storage: LocalStorage, path: Path, data: bytes, page: Optional[int] = None) -> PreviewCard:
    width, height = preview_dimensions(data)
    return PreviewCard(
        preview_id=path.stem,
        url=storage.public_url(path),
        size_bytes=len(data),
        width=width,
        height=height,
        page=page,
    )


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="الملف المرفوع فارغ.",
        )
    return data


@router.get("/capabilities", summary="هل يمكن إنشاء معاينة لهذا النوع من الملفات؟")
async def capabilities(mime_type: str = Query(...)) -> CapabilityResponse:
    return CapabilityResponse(
        mime_type=normalize_mime_type(mime_type),
        kind=classify_mime_type(mime_type),
        supported=can_generate_preview(mime_type),
    )


@router.post("", summary="إنشاء معاينة بعلامة مائية للملف المرفوع")
async def create_preview(
    file: UploadFile = File(...),
    seller_name: Optional[str] = Form(None),
    mime_type: Optional[str] = Form(None),
    storage: LocalStorage = Depends(get_storage),
    generator: PreviewGenerator = Depends(get_preview_generator),
) -> PreviewResponse:
    data = await _read_upload(file)
    declared = resolve_mime_type(mime_type or file.content_type, file.filename)
    kind = classify_mime_type(declared)

    preview = await generator.generate_preview(data, declared, seller_name)
    if preview is None:
        # غياب المعاينة لا يمنع الرفع: يُخزَّن المستند دون صورة معاينة
        logger.info("لا توجد معاينة للملف %s (%s)", file.filename, declared)
        return PreviewResponse(mime_type=declared, kind=kind, has_preview=False)

    path = storage.save_preview(preview)
    logger.info("تم إنشاء معاينة للملف %s: %s", file.filename, path.name)
    return PreviewResponse(
        mime_type=declared,
        kind=kind,
        has_preview=True,
        preview=_card(storage, path, preview),
    )


@router.post("/pages", summary="إنشاء معاينات لعدة صفحات من ملف PDF")
async def create_page_previews(
    file: UploadFile = File(...),
    seller_name: Optional[str] = Form(None),
    max_pages: Optional[int] = Form(None),
    mime_type: Optional[str] = Form(None),
    storage: LocalStorage = Depends(get_storage),
    generator: PreviewGenerator = Depends(get_preview_generator),
) -> PreviewPagesResponse:
    limit = generator.settings.pdf_preview_max_pages_limit
    if max_pages is not None and not (1 <= max_pages <= limit):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"يجب أن يكون عدد الصفحات بين 1 و {limit}.",
        )

    data = await _read_upload(file)
    declared = resolve_mime_type(mime_type or file.content_type, file.filename)
    kind = classify_mime_type(declared)

    if kind is not PreviewKind.pdf:
        preview = await generator.generate_preview(data, declared, seller_name)
        previews = [preview] if preview is not None else []
    else:
        previews = await generator.generate_pdf_preview_pages(data, max_pages, seller_name)

    saved: List[Path] = []
    cards: List[PreviewCard] = []
    try:
        for number, preview in enumerate(previews, start=1):
            path = storage.save_preview(preview)
            saved.append(path)
            cards.append(_card(storage, path, preview, page=number))
    except OSError:
        storage.cleanup(saved)
        logger.exception("تعذر حفظ معاينات الملف %s", file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="تعذر حفظ صور المعاينة.",
        )

    logger.info("تم إنشاء %d معاينة للملف %s", len(cards), file.filename)
    return PreviewPagesResponse(mime_type=declared, kind=kind, pages=cards)
