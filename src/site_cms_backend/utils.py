"""
Utility functions for filesystem operations and URL building.

This module provides helper functions for:
- Ensuring directory creation
- Generating collision-resistant upload filenames
- Resolving the public base URL used in responses
"""

from __future__ import annotations

import random
import time
from pathlib import Path
from typing import Optional

from starlette.requests import Request


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a filename into stem and extension components.

    Example:
        >>> split_extension("photo.final.PNG")
        ("photo.final", ".PNG")
    """
    path = Path(filename)
    return path.stem, path.suffix


def generate_upload_name(original_name: str) -> str:
    """
    Build a unique name for an incoming upload.

    The name is the current epoch in milliseconds plus a random suffix, with
    the original extension preserved in lower case.

    Example:
        >>> generate_upload_name("Team Photo.JPG")
        "1718290012345-482019374.jpg"
    """
    _, extension = split_extension(original_name or "")
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique}{extension.lower()}"


def public_base_url(request: Request, override: Optional[str] = None) -> str:
    """
    Base URL prepended to paths returned to clients.

    An explicit override wins; otherwise proxy headers are honoured before
    falling back to the host the request was addressed to.
    """
    if override:
        return override.rstrip("/")
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme or "http"
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"
