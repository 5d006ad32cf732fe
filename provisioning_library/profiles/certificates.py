"""Developer certificate decoding.

Provisioning profiles embed the DER encoding of every certificate allowed to
sign with them. Only two facts about each certificate matter to the index:
its subject common name and its thumbprint (uppercase SHA-1 of the DER bytes,
the same value `security find-identity` prints).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..errors import ProfileFormatError


@dataclass(frozen=True)
class CertificateSummary:
    """Common name and thumbprint of a decoded certificate."""

    common_name: str
    thumbprint: str


@dataclass(frozen=True)
class ProvisioningCertificate:
    """A developer certificate embedded in a full provisioning profile."""

    name: str
    thumbprint: str
    data: bytes

    @classmethod
    def from_der(cls, data: bytes) -> ProvisioningCertificate:
        """Decode a DER certificate taken from a profile document."""
        summary = decode_certificate(data)
        return cls(name=summary.common_name, thumbprint=summary.thumbprint, data=bytes(data))


def compute_thumbprint(data: bytes) -> str:
    """Uppercase hex SHA-1 digest of a DER certificate."""
    return hashlib.sha1(data).hexdigest().upper()


def decode_certificate(data: bytes) -> CertificateSummary:
    """Decode a DER certificate into its common name and thumbprint.

    Args:
        data: DER-encoded X.509 certificate

    Returns:
        CertificateSummary (common name is "" when the subject has none)

    Raises:
        ProfileFormatError: If the bytes are not a valid certificate
    """
    try:
        certificate = x509.load_der_x509_certificate(bytes(data))
    except ValueError as e:
        raise ProfileFormatError(f"Invalid developer certificate: {e}") from e

    attributes = certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    common_name = str(attributes[0].value) if attributes else ""
    return CertificateSummary(common_name=common_name, thumbprint=compute_thumbprint(data))
