from __future__ import annotations
"""
Local Search Console Data Store

One JSON snapshot per domain (SC_<domain>.json under DATA_DIR).
Every operation resolves its key through get_safe_cache_file_path first and
reports failures as False instead of raising.
"""

import json
import os
from typing import Any, Dict, Optional, Union

from scsync.models import empty_sc_snapshot
from scsync.settings import settings
from scsync.utils.domains import get_safe_cache_file_path

Snapshot = Dict[str, Any]


class SCDataStore:
    """Key-value store of domain snapshots. Subclasses provide the substrate."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = data_dir

    def _path(self, domain: str) -> Optional[str]:
        return get_safe_cache_file_path(domain, self.data_dir or settings.DATA_DIR)

    # Substrate hooks. _load raises FileNotFoundError for a missing entry.
    def _load(self, path: str) -> str:
        raise NotImplementedError

    def _save(self, path: str, content: str) -> None:
        raise NotImplementedError

    def _delete(self, path: str) -> None:
        raise NotImplementedError

    def read(self, domain: str) -> Union[Snapshot, bool]:
        """
        Read a domain snapshot.
        A missing entry is "no data yet": an empty snapshot is written once and returned.
        """
        try:
            path = self._path(domain)
            if not path:
                raise ValueError("Invalid domain for file path")
            try:
                raw = self._load(path)
            except FileNotFoundError:
                written = self.write(domain)
                if written is False:
                    return False
                raw = json.dumps(written)
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("Snapshot is not a JSON object")
            return data
        except Exception as e:
            print(f"[SC_CACHE] Failed to read local data for domain {domain}: {e}")
            return False

    def write(self, domain: str, snapshot: Optional[Snapshot] = None) -> Union[Snapshot, bool]:
        """Replace a domain snapshot. Returns the written snapshot or False."""
        try:
            path = self._path(domain)
            if not path:
                raise ValueError("Invalid domain for file path")
            data_to_write = snapshot if snapshot is not None else empty_sc_snapshot()
            self._save(path, json.dumps(data_to_write))
            return data_to_write
        except Exception as e:
            print(f"[SC_CACHE] Failed to write local data for domain {domain}: {e}")
            return False

    def remove(self, domain: str) -> bool:
        path = self._path(domain)
        if not path:
            return False
        try:
            self._delete(path)
            return True
        except Exception as e:
            print(f"[SC_CACHE] Failed to remove local data for domain {domain}: {e}")
            return False


class FileSCDataStore(SCDataStore):
    """Snapshots persisted as JSON files"""

    def _load(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def _save(self, path: str, content: str) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)

    def _delete(self, path: str) -> None:
        os.unlink(path)


class InMemorySCDataStore(SCDataStore):
    """Snapshots kept in a dict keyed by their would-be file path"""

    def __init__(self, data_dir: Optional[str] = None):
        super().__init__(data_dir)
        self.entries: Dict[str, str] = {}
        self.write_count = 0

    def _load(self, path: str) -> str:
        if path not in self.entries:
            raise FileNotFoundError(path)
        return self.entries[path]

    def _save(self, path: str, content: str) -> None:
        self.write_count += 1
        self.entries[path] = content

    def _delete(self, path: str) -> None:
        if path not in self.entries:
            raise FileNotFoundError(path)
        del self.entries[path]


default_store = FileSCDataStore()


def read_local_sc_data(domain: str) -> Union[Snapshot, bool]:
    return default_store.read(domain)


def update_local_sc_data(domain: str, sc_domain_data: Optional[Snapshot] = None) -> Union[Snapshot, bool]:
    return default_store.write(domain, sc_domain_data)


def remove_local_sc_data(domain: str) -> bool:
    return default_store.remove(domain)
