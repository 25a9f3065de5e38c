"""
Local file storage for task submissions and profile photos.

Layout under the uploads root:
    task-submissions/{task_id}/{yyyyMMddHHmmss}_{user_id}_{safe_name}{ext}
    profile-photos/{user_id}/avatar_{yyyyMMddHHmmss}{ext}

Uploads are streamed to disk in chunks with aiofiles; the size limit is
enforced while streaming and a rejected partial file is removed.
"""

import asyncio
import logging
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, List

import aiofiles
import aiofiles.os

from config import settings
from .exceptions import BadRequestError
from ..utils.datetime_utils import utc_now, from_timestamp_utc

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

SUBMISSION_EXTENSIONS = {".pdf", ".doc", ".docx", ".txt", ".png", ".jpg", ".jpeg", ".zip"}
PHOTO_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}

SUBMISSIONS_DIR = "task-submissions"
PHOTOS_DIR = "profile-photos"

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass
class StoredFile:
    name: str
    size_bytes: int
    uploaded_at: datetime
    relative_url: str


def file_extension(filename: Optional[str]) -> str:
    """Lower-cased extension including the dot, or '' when there is none."""
    if not filename:
        return ""
    return os.path.splitext(filename.replace("\\", "/").rsplit("/", 1)[-1])[1].lower()


def safe_file_stem(filename: Optional[str], fallback: str = "submission") -> str:
    """Base name without directories, extension or characters unsafe in file names."""
    if not filename:
        return fallback
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    stem = os.path.splitext(base)[0]
    cleaned = _UNSAFE_CHARS.sub("", stem).strip()
    return cleaned or fallback


def timestamp_slug(now: Optional[datetime] = None) -> str:
    return (now or utc_now()).strftime("%Y%m%d%H%M%S")


def public_url(base_url: str, relative_url: str) -> str:
    """Absolute URL for a stored file, from the request's base URL."""
    return f"{str(base_url).rstrip('/')}/{relative_url.lstrip('/')}"


class FileStorage:
    """Upload store rooted at a local directory."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.uploads_dir)

    def submissions_dir(self, task_id: int) -> Path:
        return self.root / SUBMISSIONS_DIR / str(task_id)

    def photos_dir(self, user_id: int) -> Path:
        return self.root / PHOTOS_DIR / str(user_id)

    async def ensure_root(self):
        await aiofiles.os.makedirs(self.root, exist_ok=True)

    # ==================== WRITING ====================

    async def _stream_to_disk(self, upload, destination: Path, max_bytes: int) -> int:
        """
        Copy an upload to `destination` chunk by chunk.

        Raises:
            BadRequestError: If the upload is empty or larger than max_bytes
        """
        await aiofiles.os.makedirs(destination.parent, exist_ok=True)

        total = 0
        too_large = False
        async with aiofiles.open(destination, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > max_bytes:
                    too_large = True
                    break
                await out.write(chunk)

        if too_large or total == 0:
            await aiofiles.os.remove(destination)
            if too_large:
                limit_mb = max_bytes / (1024 * 1024)
                raise BadRequestError(f"File too large. Maximum size: {limit_mb:.0f}MB")
            raise BadRequestError("Please select a file to upload.")

        return total

    async def save_submission(self, task_id: int, user_id: int, upload) -> StoredFile:
        """Store a task submission file."""
        extension = file_extension(getattr(upload, "filename", None))
        if extension not in SUBMISSION_EXTENSIONS:
            raise BadRequestError("File type not allowed.")

        stored_name = f"{timestamp_slug()}_{user_id}_{safe_file_stem(upload.filename)}{extension}"
        destination = self.submissions_dir(task_id) / stored_name

        size = await self._stream_to_disk(upload, destination, settings.max_submission_bytes)
        logger.info(f"Stored submission {stored_name} for task {task_id} ({size} bytes)")

        return StoredFile(
            name=stored_name,
            size_bytes=size,
            uploaded_at=utc_now(),
            relative_url=f"uploads/{SUBMISSIONS_DIR}/{task_id}/{stored_name}",
        )

    async def save_profile_photo(self, user_id: int, upload) -> StoredFile:
        """Store a profile photo, replacing any earlier one."""
        extension = file_extension(getattr(upload, "filename", None))
        if extension not in PHOTO_EXTENSIONS:
            raise BadRequestError("Only .jpg, .jpeg, .png, .webp files are allowed.")

        directory = self.photos_dir(user_id)
        stored_name = f"avatar_{timestamp_slug()}{extension}"
        staging = directory / f".{stored_name}.part"

        size = await self._stream_to_disk(upload, staging, settings.max_profile_photo_bytes)

        for old in await self._list_files(directory):
            await aiofiles.os.remove(old)
        await aiofiles.os.rename(staging, directory / stored_name)

        logger.info(f"Stored profile photo for user {user_id} ({size} bytes)")
        return StoredFile(
            name=stored_name,
            size_bytes=size,
            uploaded_at=utc_now(),
            relative_url=f"uploads/{PHOTOS_DIR}/{user_id}/{stored_name}",
        )

    # ==================== READING ====================

    async def _list_files(self, directory: Path) -> List[Path]:
        """Regular, non-staging files in a directory; empty if it does not exist."""
        if not await aiofiles.os.path.isdir(directory):
            return []
        names = await aiofiles.os.listdir(directory)
        files = []
        for name in names:
            path = directory / name
            if not name.startswith(".") and await aiofiles.os.path.isfile(path):
                files.append(path)
        return files

    async def _describe(self, paths: List[Path], url_prefix: str) -> List[StoredFile]:
        described = []
        for path in paths:
            stat = await aiofiles.os.stat(path)
            described.append(StoredFile(
                name=path.name,
                size_bytes=stat.st_size,
                uploaded_at=from_timestamp_utc(stat.st_mtime),
                relative_url=f"{url_prefix}/{path.name}",
            ))
        described.sort(key=lambda f: (f.uploaded_at, f.name), reverse=True)
        return described

    async def list_submissions(self, task_id: int) -> List[StoredFile]:
        """Stored submissions for a task, newest first."""
        files = await self._list_files(self.submissions_dir(task_id))
        return await self._describe(files, f"uploads/{SUBMISSIONS_DIR}/{task_id}")

    async def latest_profile_photo(self, user_id: int) -> Optional[StoredFile]:
        files = await self._list_files(self.photos_dir(user_id))
        described = await self._describe(files, f"uploads/{PHOTOS_DIR}/{user_id}")
        return described[0] if described else None

    # ==================== CLEANUP ====================

    async def remove_submissions(self, task_id: int) -> bool:
        """Delete a task's submission directory. Returns False when there was none."""
        directory = self.submissions_dir(task_id)
        if not await aiofiles.os.path.isdir(directory):
            return False
        await asyncio.to_thread(shutil.rmtree, directory)
        logger.info(f"Removed submissions for task {task_id}")
        return True


# Singleton
_file_storage: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """Get the file storage singleton."""
    global _file_storage
    if _file_storage is None:
        _file_storage = FileStorage()
    return _file_storage


def set_file_storage(storage: Optional[FileStorage]):
    """Replace the file storage singleton (used by tests)."""
    global _file_storage
    _file_storage = storage
