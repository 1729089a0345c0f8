from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

VARIANT_SIZES: dict[str, int] = {"w1600": 1600, "w1024": 1024, "w512": 512}
VARIANT_FORMATS: tuple[str, ...] = ("webp", "avif")
CONTENT_TYPES = {"webp": "image/webp", "avif": "image/avif"}


class ImageValidationError(ValueError):
    """Raised when an uploaded original breaks the size or dimension limits."""


class ImageProcessingError(RuntimeError):
    """Raised when no variant at all could be produced."""


@dataclass(frozen=True)
class ImageLimits:
    max_bytes: int = 20 * 1024 * 1024
    min_dimension: int = 100
    max_dimension: int = 8000
    quality_webp: int = 85
    quality_avif: int = 75


@dataclass(frozen=True)
class ImageVariant:
    size: str
    format: str
    width: int
    height: int
    body: bytes

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.format]


@dataclass(frozen=True)
class ProcessedImage:
    width: int
    height: int
    variants: list[ImageVariant] = field(default_factory=list)


class ImageProcessor:
    """Validate an original and render resized WebP/AVIF variants with Pillow."""

    def __init__(self, limits: ImageLimits | None = None) -> None:
        self.limits = limits or ImageLimits()

    def _open(self, data: bytes) -> Image.Image:
        if len(data) > self.limits.max_bytes:
            raise ImageValidationError(
                f"File too large: {len(data)} bytes (max {self.limits.max_bytes})."
            )
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageValidationError("File is not a readable image.") from exc

        width, height = image.size
        if width < self.limits.min_dimension or height < self.limits.min_dimension:
            raise ImageValidationError(
                f"Image too small: {width}x{height} (min {self.limits.min_dimension}px)."
            )
        if width > self.limits.max_dimension or height > self.limits.max_dimension:
            raise ImageValidationError(
                f"Image too large: {width}x{height} (max {self.limits.max_dimension}px)."
            )
        return image

    def _encode(self, image: Image.Image, fmt: str) -> bytes:
        buffer = io.BytesIO()
        if fmt == "webp":
            image.save(buffer, format="WEBP", quality=self.limits.quality_webp, method=6)
        else:
            image.save(buffer, format="AVIF", quality=self.limits.quality_avif)
        return buffer.getvalue()

    def process(
        self,
        data: bytes,
        expected_width: int | None = None,
        expected_height: int | None = None,
    ) -> ProcessedImage:
        original = self._open(data)
        if expected_width and expected_height and original.size != (expected_width, expected_height):
            logger.warning(
                "Image dimensions differ from client metadata actual=%sx%s declared=%sx%s",
                original.width,
                original.height,
                expected_width,
                expected_height,
            )

        # Phone cameras store rotation in EXIF; bake it in before resizing.
        image = ImageOps.exif_transpose(original)
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

        variants: list[ImageVariant] = []
        for size, target_width in VARIANT_SIZES.items():
            if target_width > image.width:
                logger.debug("Skipping variant %s for %spx wide original", size, image.width)
                continue
            target_height = max(1, round(image.height * target_width / image.width))
            resized = image.resize((target_width, target_height), Image.Resampling.LANCZOS)
            for fmt in VARIANT_FORMATS:
                try:
                    body = self._encode(resized, fmt)
                except (OSError, KeyError, ValueError):
                    logger.exception("Failed to encode variant size=%s format=%s", size, fmt)
                    continue
                variants.append(ImageVariant(size, fmt, target_width, target_height, body))

        if not variants:
            raise ImageProcessingError(
                f"No variants produced for a {image.width}x{image.height} original."
            )
        return ProcessedImage(width=image.width, height=image.height, variants=variants)
