"""Full provisioning profile loading.

A provisioning profile file is a CMS (PKCS#7) signed envelope whose content
is an XML property list. The loader cuts the property list out of the
envelope, decodes it with plistlib and materializes a MobileProvision.

Contract:
- Inputs: Profile file path or raw bytes
- Outputs: MobileProvision objects
- Side Effects: None (read-only)
"""

from __future__ import annotations

import logging
import plistlib
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from ..errors import InvalidQueryError
from ..errors import ProfileFormatError
from ..models.provisioning import DistributionType
from ..models.provisioning import Platform
from .certificates import ProvisioningCertificate
from .entitlements import get_application_identifier
from .entitlements import matches_bundle_identifier

logger = logging.getLogger(__name__)

MIN_DATE = datetime.min.replace(tzinfo=UTC)

_XML_START_TOKEN = b"<?xml"
_PLIST_START_TOKEN = b"<plist"
_PLIST_END_TOKEN = b"</plist>"
_BINARY_PLIST_TOKEN = b"bplist00"


@dataclass
class MobileProvision:
    """A fully decoded provisioning profile.

    Only materialized on demand; the index keeps ProfileRecord summaries instead.
    """

    name: str = ""
    uuid: str = ""
    creation_date: datetime = MIN_DATE
    expiration_date: datetime = MIN_DATE
    application_identifier_prefix: list[str] = field(default_factory=list)
    team_identifier_prefix: list[str] = field(default_factory=list)
    developer_certificates: list[ProvisioningCertificate] = field(default_factory=list)
    entitlements: dict[str, Any] = field(default_factory=dict)
    platforms: list[Platform] = field(default_factory=list)
    provisioned_devices: list[str] | None = None
    provisions_all_devices: bool | None = None
    time_to_live: int = 0
    version: int = 0
    data: bytes = field(default=b"", repr=False)
    file_name: Path | None = None

    @property
    def distribution_type(self) -> DistributionType:
        """Classify the profile's audience.

        Profiles listing devices are development or ad-hoc (macOS has no
        ad-hoc); profiles for all devices are in-house; the rest are App Store.
        """
        if self.provisioned_devices is not None:
            if Platform.MACOS in self.platforms:
                return DistributionType.DEVELOPMENT
            if self.entitlements.get("get-task-allow") is True:
                return DistributionType.DEVELOPMENT
            return DistributionType.AD_HOC

        if self.provisions_all_devices:
            return DistributionType.IN_HOUSE

        return DistributionType.APP_STORE

    @property
    def application_identifier(self) -> str:
        """Team-prefixed application identifier from the entitlements ("" if absent)."""
        return get_application_identifier(self.entitlements)

    def matches_bundle_identifier(self, bundle_identifier: str) -> bool:
        """Check whether this profile can sign the given bundle identifier.

        Raises:
            InvalidQueryError: If bundle_identifier is None
        """
        if bundle_identifier is None:
            raise InvalidQueryError("bundle_identifier is required")

        application_identifier = self.application_identifier
        if not application_identifier:
            return False
        return matches_bundle_identifier(application_identifier, bundle_identifier)

    def matches_developer_certificate(self, certificate: Any) -> bool:
        """Check whether a certificate (or thumbprint string) is embedded in this profile.

        Raises:
            InvalidQueryError: If certificate is None
        """
        if certificate is None:
            raise InvalidQueryError("certificate is required")

        thumbprint = certificate if isinstance(certificate, str) else certificate.thumbprint
        thumbprint = thumbprint.upper()
        return any(cert.thumbprint == thumbprint for cert in self.developer_certificates)

    def save(self, path: Path) -> None:
        """Write the original profile bytes, unmodified, to path."""
        Path(path).write_bytes(self.data)


def extract_plist_payload(data: bytes) -> bytes:
    """Extract the property list embedded in a profile's signed envelope.

    Args:
        data: Raw profile file contents

    Returns:
        Property list bytes suitable for plistlib

    Raises:
        ProfileFormatError: If no embedded property list is found
    """
    if data.startswith((_XML_START_TOKEN, _PLIST_START_TOKEN, _BINARY_PLIST_TOKEN)):
        return data

    start_index = data.find(_XML_START_TOKEN)
    if start_index == -1:
        start_index = data.find(_PLIST_START_TOKEN)
    if start_index == -1:
        raise ProfileFormatError("No embedded property list found")

    stop_index = data.find(_PLIST_END_TOKEN, start_index)
    if stop_index == -1:
        raise ProfileFormatError("Embedded property list is truncated")

    return data[start_index : stop_index + len(_PLIST_END_TOKEN)]


def load_from_data(data: bytes, file_name: Path | None = None) -> MobileProvision:
    """Decode raw profile bytes into a MobileProvision.

    Args:
        data: Raw profile file contents
        file_name: Source path; its extension supplies the platform when the
            document does not list one

    Returns:
        Decoded MobileProvision

    Raises:
        ProfileFormatError: If the document or a certificate cannot be decoded
    """
    payload = extract_plist_payload(data)
    try:
        doc = plistlib.loads(payload)
    except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError) as e:
        raise ProfileFormatError(f"Invalid property list: {e}") from e

    if not isinstance(doc, dict):
        raise ProfileFormatError(f"Expected a dictionary document, got {type(doc).__name__}")

    provision = MobileProvision(
        name=_get_string(doc, "Name"),
        uuid=_get_string(doc, "UUID"),
        creation_date=_get_date(doc, "CreationDate"),
        expiration_date=_get_date(doc, "ExpirationDate"),
        application_identifier_prefix=_get_strings(doc, "ApplicationIdentifierPrefix"),
        team_identifier_prefix=_get_strings(doc, "TeamIdentifier"),
        developer_certificates=[
            ProvisioningCertificate.from_der(item)
            for item in _get_array(doc, "DeveloperCertificates")
            if isinstance(item, bytes)
        ],
        entitlements=dict(doc["Entitlements"]) if isinstance(doc.get("Entitlements"), dict) else {},
        platforms=_get_platforms(doc),
        provisioned_devices=_get_strings(doc, "ProvisionedDevices") if "ProvisionedDevices" in doc else None,
        provisions_all_devices=(
            doc["ProvisionsAllDevices"] if isinstance(doc.get("ProvisionsAllDevices"), bool) else None
        ),
        time_to_live=_get_int(doc, "TimeToLive"),
        version=_get_int(doc, "Version"),
        data=bytes(data),
        file_name=file_name,
    )

    if not provision.platforms and file_name is not None:
        platform = Platform.from_extension(file_name.suffix)
        if platform is not None:
            provision.platforms = [platform]

    if not provision.platforms:
        raise ProfileFormatError("Profile does not target any known platform")

    return provision


def load_from_file(path: Path) -> MobileProvision:
    """Read and decode a provisioning profile file.

    Raises:
        OSError: If the file cannot be read
        ProfileFormatError: If the contents cannot be decoded
    """
    path = Path(path)
    return load_from_data(path.read_bytes(), file_name=path)


def _get_string(doc: dict[str, Any], key: str) -> str:
    value = doc.get(key)
    return value if isinstance(value, str) else ""


def _get_int(doc: dict[str, Any], key: str) -> int:
    value = doc.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return int(value)


def _get_date(doc: dict[str, Any], key: str) -> datetime:
    value = doc.get(key)
    if not isinstance(value, datetime):
        return MIN_DATE
    # plistlib yields naive datetimes expressed in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _get_array(doc: dict[str, Any], key: str) -> list[Any]:
    value = doc.get(key)
    return value if isinstance(value, list) else []


def _get_strings(doc: dict[str, Any], key: str) -> list[str]:
    return [item for item in _get_array(doc, key) if isinstance(item, str)]


def _get_platforms(doc: dict[str, Any]) -> list[Platform]:
    platforms: list[Platform] = []
    for item in _get_strings(doc, "Platform"):
        platform = Platform.from_document(item)
        if platform is None:
            logger.debug(f"Ignoring unknown profile platform: {item}")
            continue
        platforms.append(platform)
    return platforms
