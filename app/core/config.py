from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """إعدادات خدمة المعاينات مع تحميل القيم من ملف .env عند توفره."""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Preview Generator API"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    base_dir: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    storage_dir: Optional[Path] = None
    public_dir: Optional[Path] = None
    temp_dir: Optional[Path] = None

    # حدود صورة المعاينة (نسبة A4 تقريبًا)
    preview_max_width: int = Field(default=800, gt=0)
    preview_max_height: int = Field(default=1131, gt=0)
    preview_quality: int = Field(default=60, ge=1, le=100)

    # نص العلامة المائية الافتراضي عند غياب اسم البائع
    watermark_text: str = "currico.ch"
    watermark_angle: float = -30
    watermark_opacity: float = Field(default=0.18, gt=0, le=1)

    pdf_rasterizer: Literal["pdftoppm", "pymupdf"] = "pdftoppm"
    pdftoppm_path: str = "pdftoppm"
    pdf_render_dpi: int = Field(default=150, gt=0)
    pdf_render_timeout: float = Field(default=30.0, gt=0)
    pdf_preview_max_pages: int = Field(default=3, ge=1)
    pdf_preview_max_pages_limit: int = Field(default=10, ge=1)

    allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    def configure_paths(self) -> None:
        """تهيئة المسارات الافتراضية وإنشاء المجلدات في حال غيابها."""
        self.storage_dir = (self.storage_dir or (self.base_dir / "outputs")).resolve()
        self.public_dir = (self.public_dir or (self.base_dir / "public")).resolve()
        self.temp_dir = (self.temp_dir or (self.storage_dir / "tmp")).resolve()

        for directory in (self.storage_dir, self.temp_dir, self.public_dir):
            directory.mkdir(parents=True, exist_ok=True)

        (self.public_dir / "previews").mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    settings.configure_paths()
    return settings
