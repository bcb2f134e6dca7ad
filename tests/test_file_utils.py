"""
Tests for MIME type classification
"""
import pytest

from app.models import PreviewKind
from app.utils.file_utils import (
    can_generate_preview,
    classify_mime_type,
    normalize_mime_type,
    resolve_mime_type,
)


class TestCanGeneratePreview:

    def test_pdf_is_supported(self):
        assert can_generate_preview("application/pdf") is True

    @pytest.mark.parametrize("mime_type", ["image/png", "image/jpeg", "image/webp", "image/gif"])
    def test_common_images_are_supported(self, mime_type):
        assert can_generate_preview(mime_type) is True

    @pytest.mark.parametrize(
        "mime_type",
        [
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/msword",
            "application/zip",
            "text/plain",
            "application/octet-stream",
            "image/svg+xml",
        ],
    )
    def test_other_types_are_not_supported(self, mime_type):
        assert can_generate_preview(mime_type) is False

    @pytest.mark.parametrize("mime_type", ["", None, 42, "   "])
    def test_never_raises_on_garbage(self, mime_type):
        assert can_generate_preview(mime_type) is False

    def test_parameters_and_case_are_ignored(self):
        assert can_generate_preview("Application/PDF; charset=binary") is True
        assert can_generate_preview("IMAGE/PNG") is True


class TestClassifyMimeType:

    def test_kinds(self):
        assert classify_mime_type("application/pdf") is PreviewKind.pdf
        assert classify_mime_type("image/jpeg") is PreviewKind.image
        assert classify_mime_type("application/zip") is PreviewKind.unsupported

    def test_agrees_with_can_generate_preview(self):
        for mime_type in ("application/pdf", "image/gif", "text/csv", "image/heic"):
            supported = classify_mime_type(mime_type) is not PreviewKind.unsupported
            assert supported == can_generate_preview(mime_type)


class TestResolveMimeType:

    def test_declared_type_wins(self):
        assert resolve_mime_type("image/png", "scan.pdf") == "image/png"

    def test_generic_type_falls_back_to_extension(self):
        assert resolve_mime_type("application/octet-stream", "arbeitsblatt.pdf") == "application/pdf"

    def test_missing_type_falls_back_to_extension(self):
        assert resolve_mime_type(None, "foto.JPG") == "image/jpeg"

    def test_unknown_everything(self):
        assert resolve_mime_type(None, None) == "application/octet-stream"
        assert normalize_mime_type(None) == ""
