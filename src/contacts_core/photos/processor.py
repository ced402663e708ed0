# src/contacts_core/photos/processor.py

from __future__ import annotations

"""
Photo processor.

Turns original image bytes into the two renditions a contact photo is stored as:
- display photo: at most max_display_dim on its longest side, JPEG q=75,
- thumbnail: at most max_thumbnail_dim on its longest side, JPEG q=90 (q=95 when
  there is no larger display photo to fall back to).

Images are never scaled up. Transparent areas are flattened onto white.
"""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL = 96
DEFAULT_DISPLAY_PHOTO = 720
DEFAULT_DISPLAY_PHOTO_MEMORY_CONSTRAINED = 480

COMPRESSION_DISPLAY_PHOTO = 75
# Stronger compression when a higher-resolution display photo exists.
COMPRESSION_THUMBNAIL_LOW = 90
COMPRESSION_THUMBNAIL_HIGH = 95


class PhotoProcessingError(ValueError):
    """Raised when input bytes cannot be decoded or rendered as a photo."""


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)


def normalize_image(original: Image.Image, max_dim: int, force_crop_to_square: bool = False) -> Image.Image:
    """
    Crop (optionally) to a centred square and scale down so the longest side fits max_dim.
    Returns an RGB image; alpha is composited onto white.
    """
    crop_width, crop_height = original.size
    crop_left = 0
    crop_top = 0
    if force_crop_to_square and crop_width != crop_height:
        if crop_height > crop_width:
            crop_top = (crop_height - crop_width) // 2
            crop_height = crop_width
        else:
            crop_left = (crop_width - crop_height) // 2
            crop_width = crop_height

    scale = min(1.0, float(max_dim) / max(crop_width, crop_height))
    new_width = int(crop_width * scale)
    new_height = int(crop_height * scale)
    if new_width <= 0 or new_height <= 0:
        raise PhotoProcessingError("Invalid bitmap dimensions")

    img = original
    if crop_left or crop_top or (crop_width, crop_height) != original.size:
        img = img.crop((crop_left, crop_top, crop_left + crop_width, crop_top + crop_height))
    if (new_width, new_height) != img.size:
        img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)

    if _has_alpha(img):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    return img.convert("RGB")


def _compress(img: Image.Image, quality: int) -> bytes:
    buf = io.BytesIO()
    try:
        img.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise PhotoProcessingError("Unable to compress image") from e
    return buf.getvalue()


class PhotoProcessor:
    def __init__(
        self,
        original: bytes | Image.Image,
        max_display_dim: int,
        max_thumbnail_dim: int,
        force_crop_to_square: bool = False,
    ) -> None:
        self._max_display_dim = int(max_display_dim)
        self._max_thumbnail_dim = int(max_thumbnail_dim)
        self._force_crop_to_square = bool(force_crop_to_square)

        image = self._decode(original)
        self._display_photo = normalize_image(image, self._max_display_dim, self._force_crop_to_square)
        self._thumbnail_photo = normalize_image(image, self._max_thumbnail_dim, self._force_crop_to_square)

        logger.debug(
            "Photo processed original=%sx%s display=%sx%s thumbnail=%sx%s",
            image.width,
            image.height,
            self._display_photo.width,
            self._display_photo.height,
            self._thumbnail_photo.width,
            self._thumbnail_photo.height,
        )

    @staticmethod
    def _decode(original: bytes | Image.Image) -> Image.Image:
        if isinstance(original, Image.Image):
            return original
        if not original:
            raise PhotoProcessingError("Invalid image file")
        try:
            with Image.open(io.BytesIO(original)) as img:
                img = ImageOps.exif_transpose(img)
                img.load()
                return img.copy()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise PhotoProcessingError("Invalid image file") from e

    @property
    def max_display_dim(self) -> int:
        return self._max_display_dim

    @property
    def max_thumbnail_dim(self) -> int:
        return self._max_thumbnail_dim

    @property
    def display_photo(self) -> Image.Image:
        return self._display_photo

    @property
    def thumbnail_photo(self) -> Image.Image:
        return self._thumbnail_photo

    @property
    def display_photo_bytes(self) -> bytes:
        return _compress(self._display_photo, COMPRESSION_DISPLAY_PHOTO)

    @property
    def thumbnail_photo_bytes(self) -> bytes:
        has_display_photo = (
            self._display_photo.width > self._thumbnail_photo.width
            or self._display_photo.height > self._thumbnail_photo.height
        )
        quality = COMPRESSION_THUMBNAIL_LOW if has_display_photo else COMPRESSION_THUMBNAIL_HIGH
        return _compress(self._thumbnail_photo, quality)
