"""Provisioning profile queries.

Filters an index snapshot with the record predicates and materializes the
surviving profiles from disk.

Contract:
- Inputs: IndexHandle, query criteria
- Outputs: MobileProvision lists (newest first), optional rejection reasons
- Side Effects: Reconciles the index (via the handle) before each query
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any

from ..cache.handle import IndexHandle
from ..cache.models import ProfileRecord
from ..cache.reconcile import ProfileLoader
from ..errors import InvalidQueryError
from ..models.provisioning import DistributionType
from ..models.provisioning import Platform
from ..profiles.loader import MobileProvision
from .filters import ProfileCriteria
from .filters import check_platform
from .filters import check_record
from .filters import normalize_thumbprints

logger = logging.getLogger(__name__)


class ProvisioningProfileQuery:
    """Finds installed provisioning profiles through the index."""

    def __init__(self, handle: IndexHandle, loader: ProfileLoader | None = None) -> None:
        """Initialize query service.

        Args:
            handle: Index handle to query
            loader: Profile decoder for results (default: the handle's loader)
        """
        self.handle = handle
        self.loader = loader or handle.loader

    def find(
        self,
        criteria: ProfileCriteria,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """Return every profile matching the criteria, newest first.

        Args:
            criteria: Predicates a profile must satisfy
            unique: Keep only the newest profile for each name
            failures: Collects a reason for each rejected profile

        Returns:
            Matching profiles

        Raises:
            InvalidQueryError: If the criteria carry an empty thumbprint set
        """
        if criteria.thumbprints is not None and not criteria.thumbprints:
            raise InvalidQueryError("At least one certificate is required")

        index = self.handle.snapshot()
        now = datetime.now(UTC)

        results: list[MobileProvision] = []
        retained: dict[str, tuple[int, datetime]] = {}

        for record in index.records:
            reason = check_record(record, criteria, now)
            if reason is not None:
                _add_failure(failures, reason)
                continue

            position = None
            if unique and record.name in retained:
                position, retained_date = retained[record.name]
                if record.creation_date <= retained_date:
                    continue

            provision = self._load(record, failures)
            if provision is None:
                continue

            if position is not None:
                results[position] = provision
                retained[record.name] = (position, record.creation_date)
            else:
                if unique:
                    retained[record.name] = (len(results), record.creation_date)
                results.append(provision)

        logger.debug(f"Query for {criteria.platform.value} matched {len(results)} of {len(index.records)} profiles")
        return results

    def find_by_platform(
        self,
        platform: Platform,
        include_expired: bool = False,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """All profiles for a platform."""
        criteria = ProfileCriteria(platform=platform, include_expired=include_expired)
        return self.find(criteria, unique=unique, failures=failures)

    def find_by_platform_and_type(
        self,
        platform: Platform,
        distribution_type: DistributionType,
        include_expired: bool = False,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """Profiles for a platform with one of the given distribution types."""
        criteria = ProfileCriteria(
            platform=platform,
            distribution_type=distribution_type,
            include_expired=include_expired,
        )
        return self.find(criteria, unique=unique, failures=failures)

    def find_by_certificates(
        self,
        platform: Platform,
        distribution_type: DistributionType,
        certificates: Iterable[Any],
        include_expired: bool = False,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """Profiles embedding at least one of the given signing certificates.

        Args:
            certificates: Thumbprint strings or objects with a ``thumbprint``

        Raises:
            InvalidQueryError: If certificates is None or empty
        """
        if certificates is None:
            raise InvalidQueryError("certificates is required")

        criteria = ProfileCriteria(
            platform=platform,
            distribution_type=distribution_type,
            thumbprints=normalize_thumbprints(certificates),
            include_expired=include_expired,
        )
        return self.find(criteria, unique=unique, failures=failures)

    def find_by_bundle_id(
        self,
        platform: Platform,
        bundle_identifier: str,
        distribution_type: DistributionType = DistributionType.ANY,
        include_expired: bool = False,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """Profiles able to sign the given bundle identifier.

        Raises:
            InvalidQueryError: If bundle_identifier is None
        """
        if bundle_identifier is None:
            raise InvalidQueryError("bundle_identifier is required")

        criteria = ProfileCriteria(
            platform=platform,
            distribution_type=distribution_type,
            bundle_identifier=bundle_identifier,
            include_expired=include_expired,
        )
        return self.find(criteria, unique=unique, failures=failures)

    def find_by_bundle_id_and_certificates(
        self,
        platform: Platform,
        bundle_identifier: str,
        distribution_type: DistributionType,
        certificates: Iterable[Any],
        include_expired: bool = False,
        unique: bool = False,
        failures: list[str] | None = None,
    ) -> list[MobileProvision]:
        """Profiles able to sign the bundle with one of the given certificates.

        Raises:
            InvalidQueryError: If bundle_identifier is None, or certificates is None or empty
        """
        if bundle_identifier is None:
            raise InvalidQueryError("bundle_identifier is required")
        if certificates is None:
            raise InvalidQueryError("certificates is required")

        criteria = ProfileCriteria(
            platform=platform,
            distribution_type=distribution_type,
            bundle_identifier=bundle_identifier,
            thumbprints=normalize_thumbprints(certificates),
            include_expired=include_expired,
        )
        return self.find(criteria, unique=unique, failures=failures)

    def find_one(
        self,
        platform: Platform,
        name_or_uuid: str,
        failures: list[str] | None = None,
    ) -> MobileProvision | None:
        """Find a profile by name or UUID, regardless of expiration.

        A file named ``<name_or_uuid><extension>`` in a watched directory wins;
        otherwise the newest indexed profile whose name or UUID matches.

        Raises:
            InvalidQueryError: If name_or_uuid is empty
        """
        if not name_or_uuid:
            raise InvalidQueryError("name_or_uuid is required")

        file_name = f"{name_or_uuid}{platform.file_extension}"
        if Path(file_name).name == file_name:
            for directory in self.handle.directories:
                path = directory / file_name
                if not path.is_file():
                    continue
                try:
                    return self.loader(path)
                except Exception as e:
                    logger.warning(f"Error reading provisioning profile '{path}': {e}")
                    _add_failure(failures, f"{path}: could not be loaded ({e})")

        index = self.handle.snapshot()
        for record in index.records:
            reason = check_platform(record, platform)
            if reason is not None:
                _add_failure(failures, reason)
                continue

            if name_or_uuid not in (record.name, record.uuid):
                _add_failure(
                    failures,
                    f"'{record.name}' ({record.file_name}): neither name nor UUID is '{name_or_uuid}'",
                )
                continue

            provision = self._load(record, failures)
            if provision is not None:
                return provision

        return None

    def _load(self, record: ProfileRecord, failures: list[str] | None) -> MobileProvision | None:
        try:
            return self.loader(Path(record.file_name))
        except Exception as e:
            logger.warning(f"Error reading provisioning profile '{record.file_name}': {e}")
            _add_failure(failures, f"'{record.name}' ({record.file_name}): could not be loaded ({e})")
            return None


def _add_failure(failures: list[str] | None, reason: str) -> None:
    if failures is not None:
        failures.append(reason)
