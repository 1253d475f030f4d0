"""Local file storage for book covers and PDFs.

Only the generated filename is stored on the book row.
"""
from __future__ import annotations

import logging
import re
import time
from enum import Enum
from pathlib import Path

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AssetKind(str, Enum):
    cover = "covers"
    pdf = "pdfs"


def asset_dir(kind: AssetKind) -> Path:
    return Path(get_settings().media_dir) / kind.value


def _stored_name(filename: str) -> str:
    safe = _UNSAFE_CHARS.sub("_", Path(filename).name).strip("._")
    if not safe:
        raise ValidationError("Invalid file name")
    return f"{time.time_ns()}-{safe}"


async def save_upload(upload: UploadFile, kind: AssetKind) -> str:
    if not upload.filename:
        raise ValidationError("No file was uploaded")

    directory = asset_dir(kind)
    directory.mkdir(parents=True, exist_ok=True)
    name = _stored_name(upload.filename)
    content = await upload.read()
    (directory / name).write_bytes(content)
    logger.info("Stored %s asset %s (%d bytes)", kind.name, name, len(content))
    return name


def remove_asset(name: str, kind: AssetKind) -> None:
    if not name:
        return
    path = asset_dir(kind) / Path(name).name
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Asset %s was already missing", path)
    except OSError as exc:
        logger.warning("Could not remove asset %s: %s", path, exc)
