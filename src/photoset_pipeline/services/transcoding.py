"""Image normalization: decode, fit inside a bounding box, re-encode."""

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from photoset_pipeline.domain.errors import TranscodeError

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {"WEBP": "image/webp", "JPEG": "image/jpeg", "PNG": "image/png"}
_EXTENSIONS = {"WEBP": ".webp", "JPEG": ".jpg", "PNG": ".png"}


@dataclass(frozen=True)
class TranscodedImage:
    """Re-encoded image bytes with their dimensions."""

    data: bytes
    width: int
    height: int
    content_type: str
    original_width: int
    original_height: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Transcoder:
    """Normalizes accepted images into one web-friendly format."""

    max_dimension: int = 1920
    quality: int = 80
    output_format: str = "WEBP"
    auto_rotate: bool = True

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self.output_format]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self.output_format]

    def transcode(self, data: bytes, filename: str | None = None) -> TranscodedImage:
        """Return the image resized to fit the bounding box, never enlarged.

        Raises TranscodeError when the bytes cannot be decoded.
        """
        try:
            with Image.open(io.BytesIO(data)) as source:
                source.load()
                image = ImageOps.exif_transpose(source) if self.auto_rotate else source
                original_width, original_height = image.size
                image = _normalize_mode(image, self.output_format)
                image.thumbnail(
                    (self.max_dimension, self.max_dimension),
                    Image.Resampling.LANCZOS,
                )
                buffer = io.BytesIO()
                image.save(buffer, format=self.output_format, quality=self.quality)
                width, height = image.size
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
            ValueError,
        ) as exc:
            logger.warning(
                "Image decode failed",
                extra={"image_filename": filename, "error": str(exc)},
            )
            raise TranscodeError(
                f"Failed to process image: {filename or 'upload'}.", filename=filename
            ) from exc
        return TranscodedImage(
            data=buffer.getvalue(),
            width=width,
            height=height,
            content_type=self.content_type,
            original_width=original_width,
            original_height=original_height,
        )


def _normalize_mode(image: Image.Image, output_format: str) -> Image.Image:
    """Convert palette, CMYK and 16-bit images into an encodable mode."""
    has_alpha = image.mode in {"RGBA", "LA", "PA"} or "transparency" in image.info
    if output_format == "JPEG":
        return image if image.mode == "RGB" else image.convert("RGB")
    if has_alpha:
        return image if image.mode == "RGBA" else image.convert("RGBA")
    return image if image.mode == "RGB" else image.convert("RGB")
