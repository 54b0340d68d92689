"""File share primitive: a mounted directory (local disk in local-dev, EFS in AWS)."""
import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from retail_api.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShareEntry:
    name: str
    is_directory: bool


class MountedFileShare:
    """
    File share rooted at a mounted directory.

    Files are written in two steps, mirroring SMB-style shares: the file is
    first created at its final length, then its content is written from an
    offset. The two steps are not atomic; a failure in between leaves a
    zero-filled file of the right size that the next upload overwrites.
    """

    def __init__(self, share_name: str, root: Path):
        self.share_name = share_name
        self.root = Path(root)
        logger.info("MountedFileShare %s initialized at: %s", share_name, self.root)

    def _scan_root(self) -> List[ShareEntry]:
        with os.scandir(self.root) as entries:
            return sorted(
                (ShareEntry(name=entry.name, is_directory=entry.is_dir()) for entry in entries),
                key=lambda entry: entry.name,
            )

    def _create_file(self, name: str, length: int) -> None:
        with open(self.root / name, "wb") as f:
            f.truncate(length)

    def _write_range(self, name: str, content: bytes, offset: int) -> None:
        with open(self.root / name, "r+b") as f:
            f.seek(offset)
            f.write(content)

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)

    async def list_root_entries(self) -> List[ShareEntry]:
        return await asyncio.to_thread(self._scan_root)

    async def create_file(self, name: str, length: int) -> None:
        """Create (or truncate) ``name`` at exactly ``length`` bytes."""
        await asyncio.to_thread(self._create_file, name, length)

    async def write_range(self, name: str, content: bytes, offset: int = 0) -> None:
        await asyncio.to_thread(self._write_range, name, content, offset)
        logger.info("Wrote %d bytes to %s/%s at offset %d", len(content), self.share_name, name, offset)


def get_file_share(settings: Settings) -> MountedFileShare:
    return MountedFileShare(settings.file_share_name, settings.share_root)
