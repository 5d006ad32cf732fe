"""Record predicates for profile queries.

Each check returns None when the record passes, or a human-readable reason
describing why it was rejected.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..cache.models import ProfileRecord
from ..errors import InvalidQueryError
from ..models.provisioning import DistributionType
from ..models.provisioning import Platform
from ..profiles.entitlements import matches_bundle_identifier


@dataclass(frozen=True)
class ProfileCriteria:
    """What a profile must satisfy to be returned by a query.

    Attributes:
        platform: Target platform (also selects the file extension)
        distribution_type: Accepted distribution types (ANY matches all)
        bundle_identifier: App bundle identifier, or None to skip the check
        thumbprints: Accepted certificate thumbprints (uppercase), or None to skip
        include_expired: Keep profiles whose expiration date has passed
    """

    platform: Platform
    distribution_type: DistributionType = DistributionType.ANY
    bundle_identifier: str | None = None
    thumbprints: frozenset[str] | None = None
    include_expired: bool = False


def normalize_thumbprints(certificates: Iterable[Any]) -> frozenset[str]:
    """Uppercase thumbprints of certificates given as strings or objects.

    Raises:
        InvalidQueryError: If no certificates are given
    """
    thumbprints = frozenset(
        (cert if isinstance(cert, str) else cert.thumbprint).upper() for cert in certificates
    )
    if not thumbprints:
        raise InvalidQueryError("At least one certificate is required")
    return thumbprints


def check_platform(record: ProfileRecord, platform: Platform) -> str | None:
    extension = platform.file_extension
    if not record.file_name.endswith(extension):
        return f"'{record.name}' ({record.file_name}): file is not a {extension} profile"
    if platform not in record.platforms:
        supported = ", ".join(p.value for p in record.platforms)
        return f"'{record.name}' ({record.file_name}): does not support {platform.value} (supports {supported})"
    return None


def check_expiration(record: ProfileRecord, now: datetime) -> str | None:
    if record.expiration_date < now:
        return f"'{record.name}' ({record.file_name}): expired on {record.expiration_date.isoformat()}"
    return None


def check_distribution(record: ProfileRecord, distribution_type: DistributionType) -> str | None:
    if distribution_type == DistributionType.ANY:
        return None
    if distribution_type & record.distribution:
        return None
    return (
        f"'{record.name}' ({record.file_name}): distribution type {record.distribution.to_name()} "
        f"does not match {distribution_type.to_name()}"
    )


def check_bundle_identifier(record: ProfileRecord, bundle_identifier: str) -> str | None:
    if matches_bundle_identifier(record.application_identifier, bundle_identifier):
        return None
    return (
        f"'{record.name}' ({record.file_name}): application identifier "
        f"'{record.application_identifier}' does not match bundle identifier '{bundle_identifier}'"
    )


def check_certificates(record: ProfileRecord, thumbprints: frozenset[str]) -> str | None:
    if any(thumbprint.upper() in thumbprints for thumbprint in record.thumbprints):
        return None
    embedded = ", ".join(f"{cert.name} ({cert.thumbprint})" for cert in record.developer_certificates)
    accepted = ", ".join(sorted(thumbprints))
    return (
        f"'{record.name}' ({record.file_name}): none of its certificates [{embedded}] "
        f"match the accepted thumbprints [{accepted}]"
    )


def check_record(record: ProfileRecord, criteria: ProfileCriteria, now: datetime) -> str | None:
    """Run every predicate in order, returning the first rejection reason."""
    reason = check_platform(record, criteria.platform)
    if reason is None and not criteria.include_expired:
        reason = check_expiration(record, now)
    if reason is None:
        reason = check_distribution(record, criteria.distribution_type)
    if reason is None and criteria.bundle_identifier is not None:
        reason = check_bundle_identifier(record, criteria.bundle_identifier)
    if reason is None and criteria.thumbprints is not None:
        reason = check_certificates(record, criteria.thumbprints)
    return reason
