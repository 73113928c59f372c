from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .errors import AccessDeniedError, NotFoundError
from .models import ImageInfo
from .utils import ensure_directory

logger = logging.getLogger(__name__)


class ImageDirectory:
    """
    Listing and deletion of files in the upload directory.

    Files are not cross-checked against page content: deleting an image a
    service still points to leaves that URL dangling.
    """

    def __init__(self, upload_root: Path) -> None:
        self.upload_root = ensure_directory(upload_root)

    def list_images(self, base_url: str) -> List[ImageInfo]:
        return [
            ImageInfo(filename=path.name, url=f"{base_url}/uploads/{path.name}", size=path.stat().st_size)
            for path in sorted(self.upload_root.iterdir(), key=lambda p: p.name)
            if path.is_file()
        ]

    def resolve(self, filename: str) -> Path:
        """
        Resolve ``filename`` to a path strictly inside the upload directory.

        Raises:
            AccessDeniedError: If the canonical path escapes the directory
        """
        base_path = self.upload_root.resolve()
        file_path = (base_path / filename).resolve()
        if base_path not in file_path.parents:
            logger.error(f"Rejected path outside upload directory: {filename!r}")
            raise AccessDeniedError("Access denied")
        return file_path

    def delete_image(self, filename: str) -> None:
        file_path = self.resolve(filename)
        if not file_path.is_file():
            raise NotFoundError("File not found")
        file_path.unlink()
        logger.info(f"Image deleted: {file_path.name}")
