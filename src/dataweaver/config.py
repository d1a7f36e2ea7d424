"""Saved defaults: merge key, export headers, sheet link, template and mappings."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ._types import ColumnMapping
from .ingestion.json_converter import DEFAULT_TEMPLATE
from .reconciler.merger import DEFAULT_IDENTITY_FIELD
from .sheets.operations import DEFAULT_SHEET_NAME

logger = logging.getLogger(__name__)

CONFIG_ENV = "DATAWEAVER_CONFIG"
DEFAULT_EXPORT_HEADERS = ["No", "ID", "Nama", "NISN"]


class Settings(BaseModel):
    """User defaults persisted between runs."""
    default_merge_key: str = ""
    default_export_headers: List[str] = Field(default_factory=lambda: list(DEFAULT_EXPORT_HEADERS))
    sheet_url: str = ""
    header_template: str = DEFAULT_TEMPLATE
    sheet_name: str = DEFAULT_SHEET_NAME
    identity_field: str = DEFAULT_IDENTITY_FIELD
    column_mappings: List[ColumnMapping] = Field(default_factory=list)


def default_settings_path() -> Path:
    env = os.getenv(CONFIG_ENV, "")
    if env:
        return Path(env)
    return Path.home() / ".dataweaver" / "settings.json"


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Read settings; a missing or unreadable file yields the defaults."""
    path = Path(path) if path else default_settings_path()
    if not path.exists():
        return Settings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return Settings.model_validate(json.load(f))
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return Settings()


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> str:
    path = Path(path) if path else default_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.model_dump(mode="json"), f, indent=2)
    return str(path)


def export_headers(settings: Settings, available: List[str]) -> List[str]:
    """Saved export headers that exist in *available* (any case).

    Falls back to the default headers that exist, then to all of them.
    """
    lowered = {h.lower() for h in available}
    saved = [h for h in settings.default_export_headers if h.lower() in lowered]
    if saved:
        return saved
    return [h for h in DEFAULT_EXPORT_HEADERS if h.lower() in lowered] or list(available)
