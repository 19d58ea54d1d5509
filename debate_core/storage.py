"""Storage backends for debate snapshots

Backends are synchronous and dumb: they move text around by key. Validation,
retries and ordering live in DebateStore.
"""

import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .types import utcnow

logger = logging.getLogger(__name__)

_VALID_KEY = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def is_valid_key(debate_id: str) -> bool:
    """Keys double as file names, so only a safe alphabet is accepted"""
    return bool(_VALID_KEY.match(debate_id))


class StorageBackend(ABC):
    """Where snapshots live between processes"""

    @abstractmethod
    def read(self, debate_id: str) -> Optional[str]:
        """Canonical snapshot text, or None if there is none"""

    @abstractmethod
    def write(self, debate_id: str, text: str) -> None:
        """Replace the canonical snapshot; readers never see a partial write"""

    @abstractmethod
    def quarantine(self, debate_id: str, reason: str) -> None:
        """Move the canonical snapshot aside together with the reason"""

    @abstractmethod
    def archive(self, debate_id: str) -> None:
        """Move the canonical snapshot to the archive"""

    @abstractmethod
    def list_ids(self) -> list[str]:
        """Keys of every canonical snapshot"""


class FileStorageBackend(StorageBackend):
    """One JSON file per debate, written atomically with owner-only access

    Layout:
        <root>/<id>.json                 canonical snapshots
        <root>/quarantine/<id>.<ts>.json snapshots that failed validation
        <root>/quarantine/<id>.<ts>.reason.txt
        <root>/archive/<id>.json         cleaned up terminal debates
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.quarantine_dir = self.root / "quarantine"
        self.archive_dir = self.root / "archive"
        for directory in (self.root, self.quarantine_dir, self.archive_dir):
            directory.mkdir(parents=True, exist_ok=True)
            # Snapshots hold participant credentials in clear text
            os.chmod(directory, 0o700)

    def _path(self, debate_id: str) -> Path:
        if not is_valid_key(debate_id):
            raise ValueError(f"Invalid debate id: {debate_id!r}")
        return self.root / f"{debate_id}.json"

    def read(self, debate_id: str) -> Optional[str]:
        if not is_valid_key(debate_id):
            return None
        path = self._path(debate_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, debate_id: str, text: str) -> None:
        path = self._path(debate_id)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{debate_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def quarantine(self, debate_id: str, reason: str) -> None:
        path = self._path(debate_id)
        if not path.exists():
            return
        stamp = utcnow().strftime("%Y%m%dT%H%M%S%fZ")
        target = self.quarantine_dir / f"{debate_id}.{stamp}.json"
        os.replace(path, target)
        reason_path = target.with_suffix(".reason.txt")
        reason_path.write_text(reason + "\n", encoding="utf-8")
        os.chmod(reason_path, 0o600)
        logger.warning(f"Quarantined snapshot {debate_id} to {target}")

    def archive(self, debate_id: str) -> None:
        path = self._path(debate_id)
        if path.exists():
            os.replace(path, self.archive_dir / path.name)

    def list_ids(self) -> list[str]:
        return sorted(p.stem for p in self.root.glob("*.json") if is_valid_key(p.stem))


class MemoryStorageBackend(StorageBackend):
    """Keeps snapshots in dictionaries; for tests and throwaway runs"""

    def __init__(self):
        self.records: dict[str, str] = {}
        self.quarantined: dict[str, list[tuple[str, str]]] = {}
        self.archived: dict[str, str] = {}

    def read(self, debate_id: str) -> Optional[str]:
        return self.records.get(debate_id)

    def write(self, debate_id: str, text: str) -> None:
        self.records[debate_id] = text

    def quarantine(self, debate_id: str, reason: str) -> None:
        text = self.records.pop(debate_id, None)
        if text is not None:
            self.quarantined.setdefault(debate_id, []).append((text, reason))

    def archive(self, debate_id: str) -> None:
        text = self.records.pop(debate_id, None)
        if text is not None:
            self.archived[debate_id] = text

    def list_ids(self) -> list[str]:
        return sorted(self.records)
