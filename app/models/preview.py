from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PreviewKind(str, Enum):
    image = "image"
    pdf = "pdf"
    unsupported = "unsupported"


class PreviewCard(BaseModel):
    preview_id: str
    url: str
    size_bytes: int
    width: Optional[int] = None
    height: Optional[int] = None
    page: Optional[int] = Field(default=None, description="رقم الصفحة للمعاينات متعددة الصفحات.")


class PreviewResponse(BaseModel):
    status: str = "ok"
    mime_type: str
    kind: PreviewKind
    has_preview: bool
    preview: Optional[PreviewCard] = None


class PreviewPagesResponse(BaseModel):
    status: str = "ok"
    mime_type: str
    kind: PreviewKind
    pages: List[PreviewCard] = Field(default_factory=list)


class CapabilityResponse(BaseModel):
    mime_type: str
    kind: PreviewKind
    supported: bool
