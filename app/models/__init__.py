from .preview import (
    CapabilityResponse,
    PreviewCard,
    PreviewKind,
    PreviewPagesResponse,
    PreviewResponse,
)

__all__ = [
    "CapabilityResponse",
    "PreviewCard",
    "PreviewKind",
    "PreviewPagesResponse",
    "PreviewResponse",
]
