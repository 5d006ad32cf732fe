"""Response models for provisiond API.

Pydantic models for API responses.
"""

from datetime import datetime

from pydantic import Field

from provisiond.models.base import CamelCaseModel


class CertificateInfo(CamelCaseModel):
    """Developer certificate embedded in a profile.

    Attributes:
        name: Certificate common name
        thumbprint: Uppercase hex SHA-1 of the DER bytes
    """

    name: str = Field(..., description="Certificate common name")
    thumbprint: str = Field(..., description="SHA-1 thumbprint")


class ProfileSummary(CamelCaseModel):
    """Decoded provisioning profile.

    Attributes:
        name: Profile name
        uuid: Profile UUID
        file_name: Path of the profile file
        creation_date: Creation timestamp (UTC)
        expiration_date: Expiration timestamp (UTC)
        expired: Whether the expiration date has passed
        distribution_type: Distribution type name (e.g. 'AD_HOC')
        platforms: Supported platform names
        application_identifier: Team-prefixed application identifier
        team_identifiers: Team identifier prefixes
        certificates: Embedded developer certificates
        provisioned_devices: Number of listed devices, if the profile lists any
        provisions_all_devices: Whether the profile covers all devices
    """

    name: str = Field(..., description="Profile name")
    uuid: str = Field(..., description="Profile UUID")
    file_name: str | None = Field(default=None, description="Profile file path")
    creation_date: datetime = Field(..., description="Creation timestamp")
    expiration_date: datetime = Field(..., description="Expiration timestamp")
    expired: bool = Field(..., description="Whether the profile has expired")
    distribution_type: str = Field(..., description="Distribution type")
    platforms: list[str] = Field(default_factory=list, description="Supported platforms")
    application_identifier: str = Field(default="", description="Application identifier")
    team_identifiers: list[str] = Field(default_factory=list, description="Team identifier prefixes")
    certificates: list[CertificateInfo] = Field(default_factory=list, description="Developer certificates")
    provisioned_devices: int | None = Field(default=None, description="Number of provisioned devices")
    provisions_all_devices: bool | None = Field(default=None, description="Provisions all devices")


class ProfileQueryResponse(CamelCaseModel):
    """Response for a profile query.

    Attributes:
        profiles: Matching profiles, newest first
        count: Number of matching profiles
        failures: Rejection reasons (only when diagnostics were requested)
    """

    profiles: list[ProfileSummary] = Field(default_factory=list, description="Matching profiles")
    count: int = Field(..., description="Number of matching profiles")
    failures: list[str] | None = Field(default=None, description="Rejection reasons")


class ReconcileInfo(CamelCaseModel):
    """Outcome of the last index reconciliation."""

    mode: str = Field(..., description="cached, rebuilt or synced")
    files_scanned: int = Field(..., description="Profile files found on disk")
    files_added: int = Field(..., description="New records")
    files_updated: int = Field(..., description="Re-parsed records")
    files_removed: int = Field(..., description="Dropped records")
    files_unchanged: int = Field(..., description="Reused records")
    parse_failures: list[str] = Field(default_factory=list, description="Files that could not be parsed")
    saved: bool = Field(..., description="Whether the index file was written")
    completed_at: datetime = Field(..., description="Completion timestamp")


class IndexStatusResponse(CamelCaseModel):
    """Response describing the profile index.

    Attributes:
        version: Index format version
        last_modified: Directory watermark the index was built against
        record_count: Number of indexed profiles
        cache_path: Index file path
        directories: Watched profile directories
        last_result: Last reconciliation outcome
    """

    version: int = Field(..., description="Index format version")
    last_modified: datetime = Field(..., description="Directory watermark")
    record_count: int = Field(..., description="Number of indexed profiles")
    cache_path: str = Field(..., description="Index file path")
    directories: list[str] = Field(default_factory=list, description="Watched profile directories")
    last_result: ReconcileInfo | None = Field(default=None, description="Last reconciliation outcome")


class StatusResponse(CamelCaseModel):
    """Response for daemon status.

    Attributes:
        status: Status string (e.g., 'running')
        version: Daemon version
        uptime_seconds: Uptime in seconds
        index: Profile index status
    """

    status: str = Field(..., description="Daemon status")
    version: str = Field(..., description="Daemon version")
    uptime_seconds: float = Field(..., description="Uptime in seconds")
    index: IndexStatusResponse = Field(..., description="Profile index status")
