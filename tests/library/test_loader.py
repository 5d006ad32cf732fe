"""
Unit tests for full profile decoding.

Tests envelope extraction, field mapping, distribution classification and
certificate decoding.
"""

import plistlib
from datetime import UTC
from datetime import datetime
from pathlib import Path

import pytest

from provisioning_library.errors import InvalidQueryError
from provisioning_library.errors import ProfileFormatError
from provisioning_library.models import DistributionType
from provisioning_library.models import Platform
from provisioning_library.profiles import decode_certificate
from provisioning_library.profiles import extract_plist_payload
from provisioning_library.profiles import load_from_data
from provisioning_library.profiles import load_from_file


@pytest.mark.unit
class TestEnvelope:
    """Test extraction of the property list from the signed envelope."""

    def test_extracts_embedded_plist(self, profile_writer) -> None:
        doc = profile_writer.document(name="Embedded")
        data = profile_writer.encode(doc)

        payload = extract_plist_payload(data)

        assert payload.startswith(b"<?xml")
        assert payload.endswith(b"</plist>")
        assert plistlib.loads(payload)["Name"] == "Embedded"

    def test_bare_documents_pass_through(self) -> None:
        xml = plistlib.dumps({"Name": "x"}, fmt=plistlib.FMT_XML)
        binary = plistlib.dumps({"Name": "x"}, fmt=plistlib.FMT_BINARY)

        assert extract_plist_payload(xml) == xml
        assert extract_plist_payload(binary) == binary

    def test_missing_plist_raises(self) -> None:
        with pytest.raises(ProfileFormatError):
            extract_plist_payload(b"\x30\x80 no document here")

    def test_truncated_plist_raises(self) -> None:
        with pytest.raises(ProfileFormatError):
            extract_plist_payload(b"\x30\x80<?xml version='1.0'?><plist><dict>")


@pytest.mark.unit
class TestLoadFromFile:
    """Test decoding of profile files."""

    def test_fields(self, profile_writer, profile_dir: Path, certificate_factory) -> None:
        cert = certificate_factory("Apple Development: Jane Doe (ABCDE12345)")
        path = profile_writer.write(
            profile_dir,
            name="Jane Dev",
            profile_uuid="1B4E28BA-2FA1-11D2-883F-0016D3CCA427",
            application_identifier="T1.com.example.app",
            creation_date=datetime(2024, 3, 1, 10, 0, tzinfo=UTC),
            expiration_date=datetime(2030, 3, 1, 10, 0, tzinfo=UTC),
            certificates=[cert],
        )

        provision = load_from_file(path)

        assert provision.name == "Jane Dev"
        assert provision.uuid == "1B4E28BA-2FA1-11D2-883F-0016D3CCA427"
        assert provision.creation_date == datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
        assert provision.expiration_date == datetime(2030, 3, 1, 10, 0, tzinfo=UTC)
        assert provision.platforms == [Platform.IOS]
        assert provision.application_identifier == "T1.com.example.app"
        assert provision.application_identifier_prefix == ["T1"]
        assert provision.team_identifier_prefix == ["T1"]
        assert provision.time_to_live == 365
        assert provision.version == 1
        assert provision.file_name == path
        assert [(c.name, c.thumbprint) for c in provision.developer_certificates] == [(cert.name, cert.thumbprint)]

    def test_raw_bytes_preserved(self, profile_writer, profile_dir: Path, tmp_path: Path) -> None:
        path = profile_writer.write(profile_dir)
        provision = load_from_file(path)

        copy = tmp_path / "copy.mobileprovision"
        provision.save(copy)

        assert provision.data == path.read_bytes()
        assert copy.read_bytes() == path.read_bytes()

    def test_macos_platform(self, profile_writer, profile_dir: Path) -> None:
        path = profile_writer.write(profile_dir, platforms=("OSX",), extension=".provisionprofile")

        assert load_from_file(path).platforms == [Platform.MACOS]

    def test_platform_from_extension_when_missing(self, profile_writer, profile_dir: Path) -> None:
        ios = profile_writer.write(profile_dir, platforms=())
        mac = profile_writer.write(profile_dir, platforms=(), extension=".provisionprofile")

        assert load_from_file(ios).platforms == [Platform.IOS]
        assert load_from_file(mac).platforms == [Platform.MACOS]

    def test_no_platform_raises(self, profile_writer) -> None:
        data = profile_writer.encode(profile_writer.document(platforms=()))

        with pytest.raises(ProfileFormatError):
            load_from_data(data)

    def test_non_dictionary_document_raises(self) -> None:
        with pytest.raises(ProfileFormatError):
            load_from_data(plistlib.dumps(["not", "a", "dict"], fmt=plistlib.FMT_XML))

    def test_invalid_xml_raises(self) -> None:
        with pytest.raises(ProfileFormatError):
            load_from_data(b"junk<?xml version='1.0'?><plist><dict><key>Name</dict></plist>junk")

    def test_invalid_certificate_raises(self, profile_writer) -> None:
        doc = profile_writer.document()
        doc["DeveloperCertificates"] = [b"not a certificate"]

        with pytest.raises(ProfileFormatError):
            load_from_data(profile_writer.encode(doc))

    def test_missing_file_raises_os_error(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_from_file(tmp_path / "missing.mobileprovision")


@pytest.mark.unit
class TestDistributionType:
    """Test classification of a profile's audience."""

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"provisioned_devices": ["d1"], "get_task_allow": True}, DistributionType.DEVELOPMENT),
            ({"provisioned_devices": ["d1"], "get_task_allow": False}, DistributionType.AD_HOC),
            ({"provisioned_devices": ["d1"]}, DistributionType.AD_HOC),
            ({"provisions_all_devices": True}, DistributionType.IN_HOUSE),
            ({}, DistributionType.APP_STORE),
        ],
    )
    def test_ios(self, profile_writer, fields: dict, expected: DistributionType) -> None:
        provision = load_from_data(profile_writer.encode(profile_writer.document(**fields)))

        assert provision.distribution_type == expected

    def test_macos_with_devices_is_development(self, profile_writer) -> None:
        doc = profile_writer.document(platforms=("OSX",), provisioned_devices=["mac"], get_task_allow=False)

        assert load_from_data(profile_writer.encode(doc)).distribution_type == DistributionType.DEVELOPMENT

    def test_names_round_trip(self) -> None:
        value = DistributionType.DEVELOPMENT | DistributionType.APP_STORE

        assert value.to_name() == "DEVELOPMENT|APP_STORE"
        assert DistributionType.from_name(value.to_name()) == value
        assert DistributionType.ANY.to_name() == "ANY"
        assert DistributionType.from_name("ANY") == DistributionType.ANY

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ValueError):
            DistributionType.from_name("ENTERPRISE")


@pytest.mark.unit
class TestMatching:
    """Test per-profile matching helpers."""

    def test_bundle_identifier(self, profile_writer) -> None:
        doc = profile_writer.document(application_identifier="T1.com.example.*")
        provision = load_from_data(profile_writer.encode(doc))

        assert provision.matches_bundle_identifier("com.example.app")
        assert not provision.matches_bundle_identifier("com.examplefoo.app")

    def test_bundle_identifier_required(self, profile_writer) -> None:
        provision = load_from_data(profile_writer.encode(profile_writer.document()))

        with pytest.raises(InvalidQueryError):
            provision.matches_bundle_identifier(None)

    def test_developer_certificate(self, profile_writer, certificate_factory) -> None:
        cert = certificate_factory("Signer")
        provision = load_from_data(profile_writer.encode(profile_writer.document(certificates=[cert])))

        assert provision.matches_developer_certificate(cert.thumbprint.lower())
        assert provision.matches_developer_certificate(cert)
        assert not provision.matches_developer_certificate("00" * 20)


@pytest.mark.unit
class TestCertificates:
    """Test DER certificate decoding."""

    def test_common_name_and_thumbprint(self, certificate_factory) -> None:
        cert = certificate_factory("iPhone Distribution: Example Corp")

        summary = decode_certificate(cert.der)

        assert summary.common_name == "iPhone Distribution: Example Corp"
        assert summary.thumbprint == cert.thumbprint
        assert len(summary.thumbprint) == 40
        assert summary.thumbprint == summary.thumbprint.upper()

    def test_garbage_raises(self) -> None:
        with pytest.raises(ProfileFormatError):
            decode_certificate(b"\x30\x03\x02\x01\x01")
