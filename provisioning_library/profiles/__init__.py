"""Provisioning profile decoding.

Public Interface:
    - MobileProvision: Fully decoded profile
    - load_from_file / load_from_data: Decode a profile
    - decode_certificate: Common name + thumbprint of a DER certificate
    - find_installed_profiles: Index-free scan of profile directories
"""

from .certificates import CertificateSummary
from .certificates import ProvisioningCertificate
from .certificates import compute_thumbprint
from .certificates import decode_certificate
from .entitlements import get_application_identifier
from .entitlements import matches_bundle_identifier
from .installed import find_installed_profiles
from .loader import MobileProvision
from .loader import extract_plist_payload
from .loader import load_from_data
from .loader import load_from_file

__all__ = [
    "CertificateSummary",
    "ProvisioningCertificate",
    "MobileProvision",
    "compute_thumbprint",
    "decode_certificate",
    "extract_plist_payload",
    "find_installed_profiles",
    "get_application_identifier",
    "load_from_data",
    "load_from_file",
    "matches_bundle_identifier",
]
