import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import List, Optional

from fastapi import UploadFile

from sitechat.core import config
from sitechat.core.constants import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE,
    MAX_FILES_PER_MESSAGE,
)
from sitechat.core.exceptions import UploadRejected

logger = logging.getLogger(__name__)

CHAT_SUBDIR = "chat"
CHUNK_SIZE = 64 * 1024


@dataclass
class StoredFile:
    original_name: str
    mime_type: str
    size_bytes: int
    storage_path: str


def upload_root() -> str:
    return config.UPLOAD_DIR


def absolute_path(storage_path: str) -> str:
    return os.path.join(upload_root(), storage_path)


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def is_allowed(filename: str, mime_type: Optional[str]) -> bool:
    mime = (mime_type or "").split(";")[0].strip().lower()
    return _extension(filename) in ALLOWED_EXTENSIONS and mime in ALLOWED_MIME_TYPES


def selected_files(files: Optional[List[UploadFile]]) -> List[UploadFile]:
    """Drop the empty parts browsers send for an untouched file input."""
    return [f for f in (files or []) if f is not None and f.filename]


def save_upload(file: UploadFile) -> StoredFile:
    if not is_allowed(file.filename, file.content_type):
        logger.warning("Upload rejected: %s (%s)", file.filename, file.content_type)
        raise UploadRejected()

    directory = os.path.join(upload_root(), CHAT_SUBDIR)
    os.makedirs(directory, exist_ok=True)

    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}{_extension(file.filename)}"
    storage_path = f"{CHAT_SUBDIR}/{filename}"
    path = absolute_path(storage_path)

    size = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = file.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > MAX_FILE_SIZE:
                    raise UploadRejected("Datei ist zu groß (maximal 10 MB).")
                out.write(chunk)
    except BaseException:
        _unlink(path)
        raise

    return StoredFile(
        original_name=os.path.basename(file.filename),
        mime_type=file.content_type.split(";")[0].strip().lower(),
        size_bytes=size,
        storage_path=storage_path,
    )


def save_uploads(files: Optional[List[UploadFile]]) -> List[StoredFile]:
    """
    Validate and persist a message's files.

    Either every file is stored or none is: a rejection removes whatever
    was already written for this batch.
    """
    files = selected_files(files)
    if len(files) > MAX_FILES_PER_MESSAGE:
        raise UploadRejected("Maximal 3 Dateien pro Nachricht.")

    stored = []
    try:
        for file in files:
            stored.append(save_upload(file))
    except BaseException:
        remove_stored_files(stored)
        raise
    return stored


def remove_stored_files(stored: List[StoredFile]) -> None:
    for item in stored:
        _unlink(absolute_path(item.storage_path))


def remove_storage_paths(paths: List[str]) -> None:
    for storage_path in paths:
        _unlink(absolute_path(storage_path))


def _unlink(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)
