"""Cache models for the provisioning profile index.

This module contains all data models for index management including:
- Record models summarizing one profile file
- The index model persisted to disk
- Result models describing what a reconciliation did
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Literal

from ..models.provisioning import DistributionType
from ..models.provisioning import Platform
from ..profiles.loader import MIN_DATE
from ..profiles.loader import MobileProvision

INDEX_VERSION = 1


# =============================================================================
# Record Models
# =============================================================================


@dataclass(frozen=True)
class DeveloperCertificate:
    """Name and thumbprint of a certificate embedded in a profile."""

    name: str
    thumbprint: str


@dataclass(frozen=True)
class ProfileRecord:
    """Cached summary of one provisioning profile file.

    Records are never mutated; when the file changes a new record replaces
    the old one.
    """

    file_name: str
    last_modified: datetime
    name: str
    uuid: str
    distribution: DistributionType
    creation_date: datetime
    expiration_date: datetime
    platforms: tuple[Platform, ...]
    application_identifier: str
    developer_certificates: tuple[DeveloperCertificate, ...] = ()

    @classmethod
    def from_provision(
        cls,
        file_name: Path | str,
        last_modified: datetime,
        provision: MobileProvision,
    ) -> ProfileRecord:
        """Project a full profile into a record.

        Args:
            file_name: Path of the profile file
            last_modified: File mtime (UTC) observed before parsing
            provision: Decoded profile

        Returns:
            New record
        """
        return cls(
            file_name=str(file_name),
            last_modified=last_modified,
            name=provision.name,
            uuid=provision.uuid,
            distribution=provision.distribution_type,
            creation_date=provision.creation_date,
            expiration_date=provision.expiration_date,
            platforms=tuple(provision.platforms),
            application_identifier=provision.application_identifier,
            developer_certificates=tuple(
                DeveloperCertificate(name=cert.name, thumbprint=cert.thumbprint)
                for cert in provision.developer_certificates
            ),
        )

    @property
    def thumbprints(self) -> frozenset[str]:
        """Thumbprints of all embedded developer certificates."""
        return frozenset(cert.thumbprint for cert in self.developer_certificates)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the expiration date is in the past."""
        return self.expiration_date < (now or datetime.now(UTC))


# =============================================================================
# Index Model
# =============================================================================


@dataclass(frozen=True)
class ProfileIndex:
    """Persisted index of every profile in the watched directories.

    Records are always ordered by creation date, newest first: they are
    sorted on construction and stored as a tuple, so an index can only be
    changed by building a new one.
    """

    version: int = INDEX_VERSION
    last_modified: datetime = MIN_DATE
    records: tuple[ProfileRecord, ...] = ()

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.records, key=lambda r: r.creation_date, reverse=True))
        object.__setattr__(self, "records", ordered)

    @classmethod
    def build(
        cls,
        records: Iterable[ProfileRecord],
        last_modified: datetime,
        version: int = INDEX_VERSION,
    ) -> ProfileIndex:
        """Create an index from records in any order."""
        return cls(version=version, last_modified=last_modified, records=tuple(records))

    def get_record(self, file_name: Path | str) -> ProfileRecord | None:
        """Find the record for a profile file, if indexed."""
        file_name = str(file_name)
        for record in self.records:
            if record.file_name == file_name:
                return record
        return None


# =============================================================================
# Reconciliation Result Models
# =============================================================================


@dataclass
class ReconcileResult:
    """What the last reconciliation did to the index."""

    mode: Literal["cached", "rebuilt", "synced"]
    files_scanned: int = 0
    files_added: int = 0
    files_updated: int = 0
    files_removed: int = 0
    files_unchanged: int = 0
    parse_failures: list[str] = field(default_factory=list)
    saved: bool = False
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def records_parsed(self) -> int:
        """Number of profile files decoded during this reconciliation."""
        return self.files_added + self.files_updated + len(self.parse_failures)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses and logging."""
        return {
            "mode": self.mode,
            "files_scanned": self.files_scanned,
            "files_added": self.files_added,
            "files_updated": self.files_updated,
            "files_removed": self.files_removed,
            "files_unchanged": self.files_unchanged,
            "parse_failures": list(self.parse_failures),
            "saved": self.saved,
            "completed_at": self.completed_at.isoformat(),
        }
