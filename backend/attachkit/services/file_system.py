"""Local filesystem operations behind record attachments.

Every failure is re-raised as an AttachmentFilesystemError subclass so callers
can tell which step of a write, rename or delete went wrong.
"""
import asyncio
import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import BinaryIO

import aiofiles
import aiofiles.os

from attachkit.errors import DeleteFailed, DirectoryCreateFailed, RenameFailed, WriteFailed

logger = logging.getLogger(__name__)

# OS-generated files that don't keep a directory alive
JUNK_FILES = frozenset({"thumbs.db", ".ds_store", "desktop.ini"})

CHUNK_SIZE = 1024 * 1024


class LocalFileStore:
    """Handles file writes, moves and deletes on local disk."""

    def ensure_directory(self, directory: Path) -> None:
        try:
            Path(directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailed(directory, str(e)) from e

    def write(self, stream: BinaryIO, path: Path, mode: int) -> int:
        """Copy `stream` to `path` and apply `mode`. Returns bytes written.

        Bytes go to a temporary file in the target directory first; the final
        path only appears once the stream has been fully consumed.
        """
        path = Path(path)
        self.ensure_directory(path.parent)
        if hasattr(stream, "seek") and getattr(stream, "seekable", lambda: True)():
            stream.seek(0)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as tmp:
                shutil.copyfileobj(stream, tmp, CHUNK_SIZE)
                written = tmp.tell()
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise WriteFailed(path, str(e)) from e
        logger.info(f"Wrote {written} bytes to {path}")
        return written

    async def stage(self, stream: BinaryIO, directory: Path) -> Path:
        """Copy `stream` to a hidden file in `directory` off the event loop.

        Returns the staged path; `promote` moves it into place.
        """
        directory = Path(directory)
        try:
            await aiofiles.os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailed(directory, str(e)) from e
        if hasattr(stream, "seek") and getattr(stream, "seekable", lambda: True)():
            await asyncio.to_thread(stream.seek, 0)
        staged = directory / f".upload-{uuid.uuid4().hex}"
        try:
            async with aiofiles.open(staged, "xb") as f:
                while chunk := await asyncio.to_thread(stream.read, CHUNK_SIZE):
                    await f.write(chunk)
        except OSError as e:
            if await aiofiles.os.path.exists(staged):
                await aiofiles.os.remove(staged)
            raise WriteFailed(staged, str(e)) from e
        logger.debug(f"Staged upload at {staged}")
        return staged

    def promote(self, staged: Path, path: Path, mode: int) -> None:
        """Apply `mode` to a staged file and rename it to `path`."""
        path = Path(path)
        self.ensure_directory(path.parent)
        try:
            os.chmod(staged, mode)
            os.replace(staged, path)
        except OSError as e:
            raise WriteFailed(path, str(e)) from e
        logger.info(f"Stored {path}")

    def move(self, source: Path, target: Path) -> None:
        self.ensure_directory(Path(target).parent)
        try:
            os.rename(source, target)
        except OSError as e:
            raise RenameFailed(source, f"to {target}: {e}") from e
        logger.info(f"Moved {source} -> {target}")

    def delete(self, path: Path) -> bool:
        """Delete a regular file. Returns False when there was nothing to delete."""
        path = Path(path)
        if not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise DeleteFailed(path, str(e)) from e
        logger.info(f"Deleted {path}")
        return True

    def chmod(self, path: Path, mode: int) -> bool:
        path = Path(path)
        if not path.is_file():
            return False
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise WriteFailed(path, f"chmod {oct(mode)}: {e}") from e
        return True

    def prune(self, directory: Path, base: Path) -> None:
        """Remove `directory` and its ancestors while they are empty.

        Junk files alone count as empty. Stops at the first non-empty
        directory, at a symlink, or on leaving `base`; `base` itself is kept.
        """
        directory = Path(directory)
        base = Path(base)
        while directory != base and base in directory.parents:
            if directory.is_symlink() or not directory.is_dir():
                return
            entries = os.listdir(directory)
            if any(name.lower() not in JUNK_FILES for name in entries):
                return
            try:
                for name in entries:
                    os.remove(directory / name)
                directory.rmdir()
            except OSError as e:
                raise DeleteFailed(directory, str(e)) from e
            logger.debug(f"Pruned empty directory {directory}")
            directory = directory.parent


file_store = LocalFileStore()
