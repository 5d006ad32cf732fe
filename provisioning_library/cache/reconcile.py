"""Reconciliation of the persisted index with the profile directories.

Decides whether the index on disk can be trusted and, when it cannot,
either rebuilds it from scratch or incrementally re-parses only the profile
files that were added or changed since it was written.

Contract:
- Inputs: Watched profile directories, index file path, profile loader
- Outputs: ProfileIndex objects (always sorted, newest first)
- Side Effects: Rewrites the index file after a rebuild or sync
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path

from ..models.provisioning import PROFILE_EXTENSIONS
from ..profiles.loader import MIN_DATE
from ..profiles.loader import MobileProvision
from ..profiles.loader import load_from_file
from .index_store import load_index
from .index_store import save_index
from .models import INDEX_VERSION
from .models import ProfileIndex
from .models import ProfileRecord
from .models import ReconcileResult

logger = logging.getLogger(__name__)

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

ProfileLoader = Callable[[Path], MobileProvision]


@dataclass(frozen=True)
class ProfileFile:
    """A profile file found on disk and its modification time."""

    path: Path
    last_modified: datetime


@dataclass
class DirectoryScan:
    """Profile files currently present and the resulting watermark."""

    files: list[ProfileFile] = field(default_factory=list)
    watermark: datetime = MIN_DATE


def mtime_from_stat(stat_result: os.stat_result) -> datetime:
    """UTC modification time of a stat result, at microsecond precision."""
    return _UNIX_EPOCH + timedelta(microseconds=stat_result.st_mtime_ns // 1000)


def scan_profile_directories(directories: Iterable[Path]) -> DirectoryScan:
    """List profile files in the watched directories (stat calls only).

    The watermark is the newest mtime among the directories and the profile
    files inside them, so adding, removing, replacing or touching a profile
    all move it. Missing or unreadable directories contribute nothing.

    Args:
        directories: Directories to scan (not recursive)

    Returns:
        DirectoryScan with files in directory order, then path order
    """
    scan = DirectoryScan()

    for directory in directories:
        try:
            directory_mtime = mtime_from_stat(os.stat(directory))
            with os.scandir(directory) as it:
                entries = sorted(
                    (entry for entry in it if entry.name.endswith(PROFILE_EXTENSIONS)),
                    key=lambda entry: entry.name,
                )
        except (FileNotFoundError, NotADirectoryError):
            logger.debug(f"Profile directory not found: {directory}")
            continue
        except OSError as e:
            logger.warning(f"Cannot list profile directory '{directory}': {e}")
            continue

        scan.watermark = max(scan.watermark, directory_mtime)

        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                file_mtime = mtime_from_stat(entry.stat())
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}, skipping: {e}")
                continue

            scan.files.append(ProfileFile(path=Path(entry.path), last_modified=file_mtime))
            scan.watermark = max(scan.watermark, file_mtime)

    return scan


class IndexReconciler:
    """Keeps a ProfileIndex consistent with the profile directories."""

    def __init__(
        self,
        directories: Iterable[Path | str],
        cache_path: Path | str,
        loader: ProfileLoader = load_from_file,
    ) -> None:
        """Initialize reconciler.

        Args:
            directories: Profile directories to watch, in priority order
            cache_path: Index file location
            loader: Decodes one profile file (injectable for tests)
        """
        unique: dict[Path, None] = {}
        for directory in directories:
            unique.setdefault(Path(directory).expanduser().absolute(), None)
        self.directories: list[Path] = list(unique)
        self.cache_path = Path(cache_path)
        self.loader = loader
        self.last_result: ReconcileResult | None = None
        self._save_pending = False

    def open_index(self, snapshot: ProfileIndex | None = None) -> ProfileIndex:
        """Produce a trustworthy index.

        Starts from the in-memory snapshot when given, otherwise from the
        index file. A missing, corrupt or outdated index is rebuilt; an index
        whose watermark still matches the directories is returned as-is;
        anything else is synced incrementally.

        Args:
            snapshot: Last known good index held by the caller

        Returns:
            Index reflecting the current directory contents
        """
        index = snapshot if snapshot is not None else load_index(self.cache_path)

        if index is None:
            logger.info(f"No usable index at {self.cache_path}, rebuilding")
            return self.create_index()

        if index.version != INDEX_VERSION:
            logger.info(f"Index version {index.version} != {INDEX_VERSION}, rebuilding")
            return self.create_index()

        scan = scan_profile_directories(self.directories)
        if scan.watermark == index.last_modified:
            logger.debug(f"Index is current ({len(index.records)} profiles)")
            self.last_result = ReconcileResult(
                mode="cached",
                files_scanned=len(scan.files),
                files_unchanged=len(index.records),
            )
            if self._save_pending:
                logger.info(f"Retrying save of {self.cache_path}")
                self.last_result.saved = self._save(index)
            return index

        return self.sync_index(index, scan)

    def create_index(self) -> ProfileIndex:
        """Rebuild the index from every profile file and persist it.

        Returns:
            Freshly built index
        """
        scan = scan_profile_directories(self.directories)
        result = ReconcileResult(mode="rebuilt", files_scanned=len(scan.files))

        records = []
        for profile_file in scan.files:
            record = self._load_record(profile_file, result)
            if record is not None:
                records.append(record)
                result.files_added += 1

        index = ProfileIndex.build(records, last_modified=scan.watermark)
        result.saved = self._save(index)
        self.last_result = result

        logger.info(
            f"Rebuilt provisioning profile index: {len(index.records)} profiles, "
            f"{len(result.parse_failures)} unreadable"
        )
        return index

    def sync_index(self, index: ProfileIndex, scan: DirectoryScan | None = None) -> ProfileIndex:
        """Bring an index up to date, re-parsing only new or changed files.

        Args:
            index: Index to start from (left untouched)
            scan: Directory scan to sync against (taken now when omitted)

        Returns:
            New index with the current watermark
        """
        if scan is None:
            scan = scan_profile_directories(self.directories)

        result = ReconcileResult(mode="synced", files_scanned=len(scan.files))

        # Entries still in the table after the scan belong to deleted files
        table = {record.file_name: record for record in index.records}
        records: list[ProfileRecord] = []

        for profile_file in scan.files:
            existing = table.pop(str(profile_file.path), None)

            if existing is not None and existing.last_modified == profile_file.last_modified:
                records.append(existing)
                result.files_unchanged += 1
                continue

            record = self._load_record(profile_file, result)
            if record is None:
                continue

            records.append(record)
            if existing is None:
                result.files_added += 1
            else:
                result.files_updated += 1

        result.files_removed = len(table)
        for record in table.values():
            logger.debug(f"Dropping deleted profile '{record.name}' ({record.file_name})")

        synced = ProfileIndex.build(records, last_modified=scan.watermark)
        result.saved = self._save(synced)
        self.last_result = result

        logger.info(
            f"Synced provisioning profile index: {result.files_added} added, "
            f"{result.files_updated} updated, {result.files_removed} removed, "
            f"{result.files_unchanged} unchanged"
        )
        return synced

    def _save(self, index: ProfileIndex) -> bool:
        saved = save_index(index, self.cache_path)
        self._save_pending = not saved
        return saved

    def _load_record(self, profile_file: ProfileFile, result: ReconcileResult) -> ProfileRecord | None:
        """Parse one profile file into a record; failures are logged and skipped."""
        try:
            provision = self.loader(profile_file.path)
            return ProfileRecord.from_provision(profile_file.path, profile_file.last_modified, provision)
        except Exception as e:
            logger.warning(f"Error reading provisioning profile '{profile_file.path}': {e}")
            result.parse_failures.append(str(profile_file.path))
            return None
