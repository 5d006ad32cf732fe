"""Shared, thread-safe access to a provisioning profile index.

An IndexHandle couples one cache file with the directories it summarizes.
Every handle on the same cache file serializes reconciliation through one
lock, so concurrent callers never rebuild or rewrite the file twice at once.
Readers get an immutable ProfileIndex snapshot and work on it lock-free.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from ..profiles.loader import load_from_file
from .models import ProfileIndex
from .models import ReconcileResult
from .reconcile import IndexReconciler
from .reconcile import ProfileLoader

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_path_locks: dict[Path, threading.Lock] = {}
_default_handles: dict[Path, IndexHandle] = {}


def _resolve(path: Path | str) -> Path:
    return Path(path).expanduser().resolve()


def get_path_lock(cache_path: Path | str) -> threading.Lock:
    """Lock shared by every handle on the same resolved cache file."""
    key = _resolve(cache_path)
    with _registry_lock:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _path_locks[key] = lock
        return lock


class IndexHandle:
    """Owns the reconciler, lock and last known good snapshot for one cache file."""

    def __init__(
        self,
        directories: Iterable[Path | str],
        cache_path: Path | str,
        loader: ProfileLoader = load_from_file,
    ) -> None:
        """Initialize handle.

        Args:
            directories: Profile directories, in priority order
            cache_path: Index file location
            loader: Profile decoder used when (re)building records
        """
        self.cache_path = _resolve(cache_path)
        self.reconciler = IndexReconciler(directories, self.cache_path, loader=loader)
        self._lock = get_path_lock(self.cache_path)
        self._snapshot: ProfileIndex | None = None

    @property
    def directories(self) -> list[Path]:
        return self.reconciler.directories

    @property
    def loader(self) -> ProfileLoader:
        return self.reconciler.loader

    @property
    def last_result(self) -> ReconcileResult | None:
        """Outcome of the most recent reconciliation, if any ran."""
        return self.reconciler.last_result

    @property
    def current(self) -> ProfileIndex | None:
        """Last snapshot without reconciling (None before first use)."""
        return self._snapshot

    def snapshot(self) -> ProfileIndex:
        """Reconcile with the directories and return the resulting index.

        If reconciliation raises, the previous snapshot is kept and the error
        propagates to the caller.
        """
        with self._lock:
            index = self.reconciler.open_index(self._snapshot)
            self._snapshot = index
            return index

    def rebuild(self) -> ProfileIndex:
        """Force a full rebuild, ignoring the cached index."""
        with self._lock:
            logger.info(f"Forced rebuild of {self.cache_path}")
            index = self.reconciler.create_index()
            self._snapshot = index
            return index


def get_default_handle(
    directories: Iterable[Path | str] | None = None,
    cache_path: Path | str | None = None,
) -> IndexHandle:
    """Process-wide handle for a cache file.

    Unspecified arguments come from the configuration. Asking for a known
    cache file with different directories replaces its handle.

    Args:
        directories: Profile directories (default: configured directories)
        cache_path: Index file (default: configured cache path)

    Returns:
        Shared IndexHandle
    """
    if directories is None or cache_path is None:
        from ..config import load_config

        settings = load_config()
        if directories is None:
            directories = settings.get_profile_directories()
        if cache_path is None:
            cache_path = settings.get_cache_path()

    key = _resolve(cache_path)
    requested = list(dict.fromkeys(Path(d).expanduser().absolute() for d in directories))

    # Built outside the registry lock; IndexHandle takes it for the path lock
    candidate = IndexHandle(requested, key)

    with _registry_lock:
        handle = _default_handles.get(key)
        if handle is None or handle.directories != requested:
            if handle is not None:
                logger.info(f"Profile directories changed for {key}, replacing index handle")
            handle = candidate
            _default_handles[key] = handle
        return handle


def open_or_build_index(
    directories: Iterable[Path | str] | None = None,
    cache_path: Path | str | None = None,
) -> IndexHandle:
    """Default handle for a cache file, reconciled once before it is returned."""
    handle = get_default_handle(directories, cache_path)
    handle.snapshot()
    return handle


def reset_default_handles() -> None:
    """Forget every default handle (locks are kept)."""
    with _registry_lock:
        _default_handles.clear()
