from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()

logger = logging.getLogger(__name__)

_HERE = Path(__file__).resolve()
PAGE_DEFAULTS_PATH = _HERE.parent / "config" / "page_defaults.yaml"

# Sections merged key-by-key against their default; stored keys win.
OBJECT_SECTIONS = ["hero", "about", "portfolioPage", "contact", "colors", "typography"]
# Sections replaced wholesale by the stored value when it is a list.
LIST_SECTIONS = ["services", "portfolio", "testimonials"]

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
TOKEN_TTL_HOURS = 24


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    port: int = 5001
    host: str = "0.0.0.0"
    jwt_secret: Optional[str] = None
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    public_base_url: Optional[str] = None
    mongo_uri: Optional[str] = None
    mongo_db_name: str = "site_cms"
    mongo_collection: str = "pagedatas"
    upload_dir: Path = Path("uploads")
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        public_base_url = os.environ.get("PUBLIC_BASE_URL") or None
        if public_base_url:
            public_base_url = public_base_url.rstrip("/")

        return cls(
            port=int(os.environ.get("PORT", "5001")),
            host=os.environ.get("HOST", "0.0.0.0"),
            jwt_secret=os.environ.get("JWT_SECRET") or None,
            admin_username=os.environ.get("ADMIN_USERNAME") or None,
            admin_password=os.environ.get("ADMIN_PASSWORD") or None,
            public_base_url=public_base_url,
            mongo_uri=os.environ.get("MONGO_URI") or None,
            mongo_db_name=os.environ.get("MONGO_DB_NAME", "site_cms"),
            mongo_collection=os.environ.get("MONGO_COLLECTION", "pagedatas"),
            upload_dir=Path(os.environ.get("UPLOAD_DIR", "uploads")),
            cors_origins=_split_csv(os.environ.get("CORS_ORIGINS", "*")) or ["*"],
        )

    def log_summary(self) -> None:
        for name, value in (
            ("JWT_SECRET", self.jwt_secret),
            ("ADMIN_USERNAME", self.admin_username),
            ("ADMIN_PASSWORD", self.admin_password),
            ("MONGO_URI", self.mongo_uri),
        ):
            logger.info(f"{name} configured: {'yes' if value else 'no'}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _load_page_defaults() -> DictConfig:
    if not PAGE_DEFAULTS_PATH.exists():
        raise FileNotFoundError(f"Page defaults not found at {PAGE_DEFAULTS_PATH}")
    return OmegaConf.load(PAGE_DEFAULTS_PATH)


def default_page_data() -> Dict[str, Any]:
    """Return a fresh, mutable copy of the default page-data document."""
    container = OmegaConf.to_container(_load_page_defaults(), resolve=True)
    return copy.deepcopy(container)  # type: ignore[arg-type]


def merge_page_data(data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Reconcile a stored or submitted document with the default shape.

    Top-level keys of ``data`` override the defaults. Object sections are
    merged one level deep so that keys added to the defaults are back-filled.
    List sections keep the given list, or become empty when the given value
    is missing or not a list.

    Args:
        data: Document as stored or as submitted by the admin panel

    Returns:
        A new dictionary; neither the input nor the defaults are mutated
    """
    data = data or {}
    defaults = default_page_data()

    merged: Dict[str, Any] = {**defaults, **copy.deepcopy(data)}
    for section in OBJECT_SECTIONS:
        stored = data.get(section)
        merged[section] = {
            **defaults[section],
            **(copy.deepcopy(stored) if isinstance(stored, dict) else {}),
        }
    for section in LIST_SECTIONS:
        stored = data.get(section)
        merged[section] = copy.deepcopy(stored) if isinstance(stored, list) else []
    return merged
