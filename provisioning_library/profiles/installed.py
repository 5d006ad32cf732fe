"""Index-free enumeration of installed provisioning profiles.

Reads every profile for a platform straight from disk. Slower than the
index, but it does not touch the cache file at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC
from datetime import datetime
from pathlib import Path

from ..errors import ProfileFormatError
from ..models.provisioning import Platform
from .loader import MobileProvision
from .loader import load_from_file

logger = logging.getLogger(__name__)


def find_installed_profiles(
    platform: Platform,
    directories: Iterable[Path],
    include_expired: bool = False,
) -> list[MobileProvision]:
    """Load all installed profiles for a platform, newest first.

    When the same UUID is installed more than once (e.g. in both the old and
    new Xcode directories) only the most recently created copy is kept.

    Args:
        platform: Platform whose file extension is scanned
        directories: Profile directories, missing ones are skipped
        include_expired: Keep profiles whose expiration date has passed

    Returns:
        Profiles sorted by creation date, newest first
    """
    pattern = f"*{platform.file_extension}"
    now = datetime.now(UTC)
    by_uuid: dict[str, MobileProvision] = {}

    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.debug(f"Profile directory not found, skipping: {directory}")
            continue

        for path in sorted(directory.glob(pattern)):
            try:
                provision = load_from_file(path)
            except (OSError, ProfileFormatError) as e:
                logger.warning(f"Error reading {platform.value} provisioning profile '{path}': {e}")
                continue

            if not include_expired and provision.expiration_date <= now:
                continue

            existing = by_uuid.get(provision.uuid)
            if existing is None or provision.creation_date > existing.creation_date:
                by_uuid[provision.uuid] = provision

    return sorted(by_uuid.values(), key=lambda p: p.creation_date, reverse=True)
