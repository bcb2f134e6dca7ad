from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from app.core.config import get_settings

PREVIEWS_URL_PREFIX = "/media/previews"


class LocalStorage:
    """تخزين صور المعاينة الناتجة محليًا ضمن المجلد العام القابل للتنزيل."""

    def __init__(self, public_dir: Optional[Path] = None) -> None:
        settings = get_settings()
        self.public_dir = Path(public_dir or settings.public_dir)
        self.previews_dir = self.public_dir / "previews"
        self.previews_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _generate_filename(suffix: str) -> str:
        suffix = suffix if suffix.startswith(".") else f".{suffix.lstrip('.')}"
        return f"{uuid4().hex}{suffix}"

    def save_preview(self, data: bytes, *, suffix: str = ".webp") -> Path:
        target_path = self.previews_dir / self._generate_filename(suffix)
        target_path.write_bytes(data)
        return target_path

    @staticmethod
    def public_url(path: Path) -> str:
        return f"{PREVIEWS_URL_PREFIX}/{path.name}"

    def cleanup(self, paths: Iterable[Path]) -> None:
        for path in paths:
            if path and path.exists():
                path.unlink(missing_ok=True)
