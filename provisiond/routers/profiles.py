"""Provisioning profile API endpoints."""

import logging
import re
from datetime import UTC
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Response

from provisioning_library.errors import InvalidQueryError
from provisioning_library.models import DistributionType
from provisioning_library.models import Platform
from provisioning_library.profiles import MobileProvision
from provisioning_library.query import ProfileCriteria
from provisioning_library.query import ProvisioningProfileQuery
from provisioning_library.query import normalize_thumbprints

from ..dependencies import get_query_service
from ..models import CertificateInfo
from ..models import ProfileQueryResponse
from ..models import ProfileSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def to_summary(provision: MobileProvision) -> ProfileSummary:
    """Convert a decoded profile to its API representation."""
    return ProfileSummary(
        name=provision.name,
        uuid=provision.uuid,
        file_name=str(provision.file_name) if provision.file_name else None,
        creation_date=provision.creation_date,
        expiration_date=provision.expiration_date,
        expired=provision.expiration_date < datetime.now(UTC),
        distribution_type=provision.distribution_type.to_name(),
        platforms=[platform.value for platform in provision.platforms],
        application_identifier=provision.application_identifier,
        team_identifiers=list(provision.team_identifier_prefix),
        certificates=[CertificateInfo.model_validate(cert) for cert in provision.developer_certificates],
        provisioned_devices=(
            len(provision.provisioned_devices) if provision.provisioned_devices is not None else None
        ),
        provisions_all_devices=provision.provisions_all_devices,
    )


@router.get("", response_model=ProfileQueryResponse)
def list_profiles(
    service: Annotated[ProvisioningProfileQuery, Depends(get_query_service)],
    platform: Platform,
    distribution_type: Annotated[str, Query(alias="distributionType")] = "ANY",
    bundle_id: Annotated[str | None, Query(alias="bundleId")] = None,
    thumbprint: Annotated[list[str] | None, Query()] = None,
    include_expired: Annotated[bool, Query(alias="includeExpired")] = False,
    unique: bool = False,
    diagnostics: bool = False,
) -> ProfileQueryResponse:
    """Query installed provisioning profiles.

    Args:
        service: Profile query service
        platform: Target platform
        distribution_type: Accepted distribution types, e.g. "DEVELOPMENT|AD_HOC"
        bundle_id: Bundle identifier the profile must be able to sign
        thumbprint: Accepted certificate thumbprints (repeatable)
        include_expired: Include expired profiles
        unique: Keep only the newest profile per name
        diagnostics: Include the reason each rejected profile was skipped

    Returns:
        Matching profiles, newest first

    Raises:
        HTTPException:
            - 400 for invalid query parameters
            - 500 for other errors
    """
    failures: list[str] | None = [] if diagnostics else None

    try:
        criteria = ProfileCriteria(
            platform=platform,
            distribution_type=DistributionType.from_name(distribution_type),
            bundle_identifier=bundle_id,
            thumbprints=normalize_thumbprints(thumbprint) if thumbprint else None,
            include_expired=include_expired,
        )
        profiles = service.find(criteria, unique=unique, failures=failures)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Failed to query profiles: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    return ProfileQueryResponse(
        profiles=[to_summary(p) for p in profiles],
        count=len(profiles),
        failures=failures,
    )


def download_file_name(provision: MobileProvision, platform: Platform) -> str:
    """Attachment name for a profile, restricted to filename-safe characters."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", provision.uuid or provision.name).strip("._")
    return f"{stem or 'profile'}{platform.file_extension}"


def _find_one(service: ProvisioningProfileQuery, platform: Platform, name_or_uuid: str) -> MobileProvision:
    try:
        provision = service.find_one(platform, name_or_uuid)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Failed to look up profile '{name_or_uuid}': {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    if provision is None:
        raise HTTPException(status_code=404, detail=f"Profile '{name_or_uuid}' not found")
    return provision


@router.get("/{name_or_uuid}", response_model=ProfileSummary)
def get_profile(
    name_or_uuid: str,
    service: Annotated[ProvisioningProfileQuery, Depends(get_query_service)],
    platform: Platform,
) -> ProfileSummary:
    """Get a profile by name or UUID.

    Raises:
        HTTPException: 404 if no profile matches
    """
    return to_summary(_find_one(service, platform, name_or_uuid))


@router.get("/{name_or_uuid}/download")
def download_profile(
    name_or_uuid: str,
    service: Annotated[ProvisioningProfileQuery, Depends(get_query_service)],
    platform: Platform,
) -> Response:
    """Download the original profile file, byte for byte.

    Raises:
        HTTPException: 404 if no profile matches
    """
    provision = _find_one(service, platform, name_or_uuid)
    file_name = download_file_name(provision, platform)
    return Response(
        content=provision.data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
