"""
Upload pipeline for service images.

An accepted upload goes through these steps:
1. Validate the declared MIME type (before anything touches the disk)
2. Stream the body to a uniquely named temp file, enforcing the size ceiling
3. Produce a compressed JPEG derivative with Pillow
4. Remove the temp original, whatever the outcome of step 3
5. Return the derivative's filename, public URL and size

Only the derivative persists in the upload directory. Nothing is recorded in
the page-data document; the admin panel attaches the returned URL to a
service entry and saves the page separately.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from .configuration import MAX_UPLOAD_BYTES
from .errors import PayloadTooLargeError, ProcessingError, UnsupportedMediaError, ValidationError
from .models import ImageRecord
from .utils import ensure_directory, generate_upload_name, split_extension

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_DIMENSION = 1200
JPEG_QUALITY = 80
COMPRESSED_PREFIX = "compressed-"
CHUNK_SIZE = 1024 * 1024


def compress_image(input_path: Path, output_path: Path, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """
    Write a progressive JPEG of ``input_path`` that fits in a square box.

    The image is shrunk to fit within ``max_dimension`` on both sides, keeping
    its aspect ratio; smaller images are never enlarged. Transparent pixels
    are flattened onto white. Animated images keep their first frame.

    Args:
        input_path: Source image in any format Pillow can read
        output_path: Destination for the JPEG derivative
        max_dimension: Bounding box edge in pixels

    Returns:
        (width, height) of the written derivative

    Raises:
        FileNotFoundError: If the input does not exist
        OSError: If Pillow cannot decode or encode the image
    """
    if not input_path.exists():
        raise FileNotFoundError(f"Input file does not exist: {input_path}")

    with Image.open(input_path) as source:
        if source.mode in ("RGBA", "LA", "P"):
            rgba = source.convert("RGBA")
            img = Image.new("RGB", rgba.size, (255, 255, 255))
            img.paste(rgba, mask=rgba.getchannel("A"))
        else:
            img = source.convert("RGB")

    img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    img.save(output_path, format="JPEG", quality=JPEG_QUALITY, progressive=True, optimize=True)

    if not output_path.exists():
        raise OSError(f"Output file was not created: {output_path}")
    return img.size


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(f"Could not remove {path}: {exc}")


class ImagePipeline:
    """
    Receives, validates and compresses uploaded images.

    Attributes:
        upload_root: Directory where derivatives are stored and served from
        max_bytes: Largest accepted upload
    """

    def __init__(self, upload_root: Path, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
        self.upload_root = ensure_directory(upload_root)
        self.max_bytes = max_bytes

    def _validate(self, file: Optional[UploadFile]) -> UploadFile:
        if file is None or not file.filename:
            raise ValidationError("No image was sent")
        if (file.content_type or "") not in ALLOWED_MIME_TYPES:
            raise UnsupportedMediaError(f"File type not allowed: {file.content_type or 'unknown'}")
        if file.size is not None and file.size > self.max_bytes:
            raise PayloadTooLargeError(f"File too large: limit is {self.max_bytes} bytes")
        return file

    async def _store_temp(self, file: UploadFile) -> Path:
        destination = self.upload_root / generate_upload_name(file.filename or "")
        written = 0
        try:
            with destination.open("wb") as buffer:
                while chunk := await file.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLargeError(f"File too large: limit is {self.max_bytes} bytes")
                    buffer.write(chunk)
        except PayloadTooLargeError:
            _remove_quietly(destination)
            raise
        except Exception as exc:
            logger.error(f"Failed to store upload {destination.name}: {exc}")
            _remove_quietly(destination)
            raise ProcessingError("Failed to store uploaded image") from exc
        except BaseException:
            _remove_quietly(destination)
            raise
        finally:
            await file.close()
        return destination

    async def process(self, file: Optional[UploadFile], base_url: str) -> ImageRecord:
        """
        Run an upload through the full pipeline.

        Args:
            file: The multipart file field
            base_url: Public base URL used to build the returned URL

        Returns:
            ImageRecord describing the stored derivative

        Raises:
            ValidationError: If no file was sent
            UnsupportedMediaError: If the MIME type is not an allowed image type
            PayloadTooLargeError: If the upload exceeds ``max_bytes``
            ProcessingError: If compression fails
        """
        upload = self._validate(file)
        original_name = upload.filename or ""
        temp_path = await self._store_temp(upload)

        stem, _ = split_extension(temp_path.name)
        output_path = self.upload_root / f"{COMPRESSED_PREFIX}{stem}.jpg"
        logger.info(f"Processing image {original_name!r}: {temp_path.name} -> {output_path.name}")

        try:
            width, height = await run_in_threadpool(compress_image, temp_path, output_path)
        except (OSError, EOFError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as exc:
            logger.error(f"Compression failed for {temp_path.name}: {exc}")
            _remove_quietly(output_path)
            raise ProcessingError("Failed to compress image") from exc
        finally:
            _remove_quietly(temp_path)

        size = output_path.stat().st_size
        logger.info(f"Image compressed: {output_path.name} ({size} bytes, {width}x{height})")

        return ImageRecord(
            filename=output_path.name,
            original_name=original_name,
            url=f"{base_url}/uploads/{output_path.name}",
            size=size,
            width=width,
            height=height,
            uploaded_at=datetime.now(timezone.utc),
        )
