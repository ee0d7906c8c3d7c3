"""
Edible Label Capture - Centralized Configuration

Uses Pydantic Settings to load config from .env file with validation.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional


# Order is load-bearing: a keyword's position is its YOLO class index.
DEFAULT_CATEGORIES = [
    "chips", "snack", "drink", "soda", "bento", "candy", "chocolate",
    "cupnoodles", "cereal", "cookie", "onigiri", "icecream", "sandwich", "can", "bottle",
]


def normalize_categories(categories: list[str]) -> list[str]:
    """Lower-case and strip keywords; reject empty or duplicated lists."""
    keywords = [k.strip().lower() for k in categories]
    if not keywords or any(not k for k in keywords):
        raise ValueError("categories must be a non-empty list of non-empty keywords")
    if len(set(keywords)) != len(keywords):
        raise ValueError(f"categories contain duplicates: {keywords}")
    return keywords


def build_class_map(categories: list[str]) -> dict[str, int]:
    """Explicit keyword -> class index mapping."""
    return {keyword: idx for idx, keyword in enumerate(categories)}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Visibility ---
    viewport_margin: float = Field(
        default=0.05, ge=0.0, le=0.5,
        description="Fraction of the viewport trimmed on every edge. Objects whose "
                    "bounds center falls inside this border are not labeled."
    )

    # --- Selection ---
    iou_threshold: float = Field(
        default=0.1, ge=0.0, le=1.0,
        description="Max IoU against already accepted boxes during the diversity pass."
    )
    duplicate_iou_threshold: float = Field(
        default=0.99, ge=0.0, le=1.0,
        description="Backfill pass rejects a box only when its IoU against an accepted "
                    "box reaches this value (near-identical duplicates)."
    )
    num_objects_to_detect: int = Field(
        default=5, ge=0,
        description="Target number of labels per frame"
    )

    # --- Categories ---
    categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        description="Ordered keyword list. Index in this list = class index in label files. "
                    "Set as a JSON list in the environment, e.g. CATEGORIES='[\"chips\", \"drink\"]'"
    )

    # --- Output ---
    image_width: int = Field(default=1920, ge=1)
    image_height: int = Field(default=1080, ge=1)
    output_dir: str = Field(default="Dataset", description="Directory for frame_XXXX label/image pairs")

    # --- Scene ---
    scene_path: Optional[str] = Field(default=None, description="JSON scene description")

    # --- Logging ---
    log_level: str = Field(default="INFO")

    @field_validator("categories")
    @classmethod
    def _normalize_categories(cls, value: list[str]) -> list[str]:
        return normalize_categories(value)

    @property
    def class_map(self) -> dict[str, int]:
        """Explicit keyword -> class index mapping."""
        return build_class_map(self.categories)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance
settings = Settings()
