# searchindex/DB/directory.py
from __future__ import annotations
import logging
import os
from typing import Dict, Optional

from .. import config as CFG
from ..errors import ConfigError, LoadFailure
from ..loader import Manifest, parse_manifest
from ..partition import Partition, bucket_order, parse_bucket_id

log = logging.getLogger(__name__)


class DirectorySource:
    """
    Shard files laid out the way doxygen writes them:
        search/searchdata.js      (optional manifest)
        search/all_0.js, all_1.js, ..., functions_4.js, ...
    JSON shards (<index>_<n>.json) are accepted alongside .js ones.
    Only file names are scanned at open; shard bodies are read on fetch.
    """
    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)
        if not os.path.isdir(self.root):
            raise ConfigError(f"shard directory not found: {self.root}")
        self._files: Dict[str, str] = {}      # bucket id -> absolute path
        self._manifest: Optional[Manifest] = None
        self._scan()

    def _scan(self) -> None:
        with os.scandir(self.root) as it:
            for entry in it:
                if not entry.is_file(follow_symlinks=True):
                    continue
                stem, ext = os.path.splitext(entry.name)
                if entry.name == CFG.MANIFEST_NAME:
                    self._load_manifest(entry.path)
                    continue
                if ext.lower() not in CFG.SHARD_EXTS:
                    continue
                try:
                    parse_bucket_id(stem)
                except ValueError:
                    continue
                # .js wins over .json when both exist
                if stem in self._files and ext.lower() != ".js":
                    continue
                self._files[stem] = entry.path
        log.info("Scanned %s: %d shard files", self.root, len(self._files))

    def _load_manifest(self, path: str) -> None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                self._manifest = parse_manifest(f.read())
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable manifest %s: %s", path, e)

    def fetch(self, bucket_id: str) -> Optional[str]:
        path = self._files.get(bucket_id)
        if path is None:
            return None
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return f.read()
        except OSError as e:
            raise LoadFailure(bucket_id, str(e)) from e

    def bucket_ids(self, index_name: str) -> list[str]:
        ids = [b for b in self._files if parse_bucket_id(b)[0] == index_name]
        return sorted(ids, key=bucket_order)

    def partition(self, index_name: str) -> Partition:
        if self._manifest is not None:
            p = self._manifest.partition(index_name)
            if p is not None:
                return p
        return Partition(index_name, CFG.DEFAULT_ALPHABET)

    def indexes(self) -> list[str]:
        return sorted({parse_bucket_id(b)[0] for b in self._files})

    def close(self) -> None:
        self._files.clear()
