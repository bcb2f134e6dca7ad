import mimetypes
from typing import Optional

from app.models.preview import PreviewKind

PDF_MIME_TYPE = "application/pdf"

# صيغ الصور التي يستطيع Pillow فك ترميزها لإنشاء معاينة
SUPPORTED_IMAGE_TYPES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/pjpeg",
        "image/webp",
        "image/gif",
        "image/bmp",
        "image/tiff",
    }
)


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """إزالة المعاملات (مثل charset) وتوحيد حالة الأحرف."""
    if not isinstance(mime_type, str):
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def classify_mime_type(mime_type: Optional[str]) -> PreviewKind:
    normalized = normalize_mime_type(mime_type)
    if normalized == PDF_MIME_TYPE:
        return PreviewKind.pdf
    if normalized in SUPPORTED_IMAGE_TYPES:
        return PreviewKind.image
    return PreviewKind.unsupported


def can_generate_preview(mime_type: Optional[str]) -> bool:
    """هل يمكن إنشاء معاينة تلقائية لهذا النوع؟ (لا ترفع استثناءً أبدًا)"""
    return classify_mime_type(mime_type) is not PreviewKind.unsupported


def resolve_mime_type(declared: Optional[str], filename: Optional[str] = None) -> str:
    """
    تحديد نوع الملف المرفوع: النوع المُعلَن أولًا، ثم التخمين من الامتداد
    عندما يكون المُعلَن عامًا (application/octet-stream) أو غائبًا.
    """
    normalized = normalize_mime_type(declared)
    if normalized and normalized != "application/octet-stream":
        return normalized

    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return normalize_mime_type(guessed)

    return normalized or "application/octet-stream"
