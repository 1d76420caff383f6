"""
Directory-backed object store for the downloadable PDFs.
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

logger = logging.getLogger(__name__)


class LocalObjectStore:
    """Lists, reads and deletes PDFs in a flat directory."""

    def __init__(self, root: str):
        self.root = str(root)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        # Keys are plain filenames; refuse anything that leaves the root
        if not key or os.path.basename(key) != key:
            raise ValueError(f"Invalid object key: {key!r}")
        return os.path.join(self.root, key)

    def list(self) -> List[dict]:
        objects = []
        for filename in sorted(os.listdir(self.root)):
            if not filename.lower().endswith(".pdf"):
                continue
            stat = os.stat(os.path.join(self.root, filename))
            objects.append({
                "key": filename,
                "size": stat.st_size,
                "uploaded": datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat()
            })
        return objects

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not os.path.isfile(path):
            return None
        with open(path, "rb") as f:
            return f.read()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.isfile(path):
            os.remove(path)
            logger.info(f"Removed object {key}")
