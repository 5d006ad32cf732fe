"""
Shared pytest fixtures for provisiond test suite.

Provides fixtures for:
- Temporary storage directories
- Self-signed developer certificates
- Provisioning profile files on disk
- A profile loader that counts parse calls
"""

import os
import plistlib
import tempfile
import threading
import time
import uuid
from collections.abc import Generator
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from provisioning_library.cache import reset_default_handles
from provisioning_library.cache.handle import IndexHandle
from provisioning_library.profiles import MobileProvision
from provisioning_library.profiles import compute_thumbprint
from provisioning_library.profiles import load_from_file

# Bytes surrounding the property list in a signed profile (CMS SignedData)
ENVELOPE_HEAD = bytes.fromhex(
    "308006092a864886f70d010702a0803080020101310b300906052b0e03021a0500"
    "308006092a864886f70d010701a0802480048203e8"
)
ENVELOPE_TAIL = bytes.fromhex("0000000000000000a08230820122300d06092a864886f70d01010105000382010f00")


@dataclass(frozen=True)
class SigningCertificate:
    """DER certificate plus the name and thumbprint the loader should report."""

    name: str
    der: bytes

    @property
    def thumbprint(self) -> str:
        return compute_thumbprint(self.der)


def make_certificate(common_name: str) -> SigningCertificate:
    """Create a self-signed certificate with the given common name."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return SigningCertificate(name=common_name, der=certificate.public_bytes(serialization.Encoding.DER))


class FileClock:
    """Hands out strictly increasing mtimes, an hour ahead of the real clock.

    Explicit timestamps keep tests independent of filesystem timestamp
    granularity.
    """

    def __init__(self) -> None:
        self._next_ns = (time.time_ns() // 1000) * 1000 + 3600 * 10**9

    def touch(self, path: Path) -> int:
        """Set path's mtime to the next tick and return it (ns)."""
        value = self._next_ns
        self._next_ns += 10**9
        os.utime(path, ns=(value, value))
        return value


def _plist_date(value: datetime) -> datetime:
    return value.astimezone(UTC).replace(tzinfo=None, microsecond=0)


class ProfileWriter:
    """Writes provisioning profile files shaped like the ones Xcode installs."""

    def __init__(self, clock: FileClock) -> None:
        self.clock = clock

    def document(
        self,
        name: str = "Example Profile",
        profile_uuid: str | None = None,
        application_identifier: str = "T1.com.example.*",
        platforms: Iterable[str] = ("iOS",),
        creation_date: datetime | None = None,
        expiration_date: datetime | None = None,
        provisioned_devices: list[str] | None = None,
        provisions_all_devices: bool | None = None,
        get_task_allow: bool | None = None,
        certificates: Iterable[SigningCertificate] = (),
    ) -> dict:
        """Build a profile property list."""
        now = datetime.now(UTC)
        team = application_identifier.partition(".")[0]
        entitlements: dict = {"application-identifier": application_identifier}
        if get_task_allow is not None:
            entitlements["get-task-allow"] = get_task_allow

        doc = {
            "AppIDName": name,
            "ApplicationIdentifierPrefix": [team],
            "CreationDate": _plist_date(creation_date or now - timedelta(days=1)),
            "DeveloperCertificates": [cert.der for cert in certificates],
            "Entitlements": entitlements,
            "ExpirationDate": _plist_date(expiration_date or now + timedelta(days=365)),
            "Name": name,
            "TeamIdentifier": [team],
            "TeamName": "Example Team",
            "TimeToLive": 365,
            "UUID": profile_uuid or str(uuid.uuid4()).upper(),
            "Version": 1,
        }
        platforms = list(platforms)
        if platforms:
            doc["Platform"] = platforms
        if provisioned_devices is not None:
            doc["ProvisionedDevices"] = list(provisioned_devices)
        if provisions_all_devices is not None:
            doc["ProvisionsAllDevices"] = provisions_all_devices
        return doc

    def encode(self, doc: dict) -> bytes:
        """Wrap a property list in signed-envelope bytes."""
        return ENVELOPE_HEAD + plistlib.dumps(doc, fmt=plistlib.FMT_XML) + ENVELOPE_TAIL

    def write_bytes(self, directory: Path, file_name: str, data: bytes) -> Path:
        """Write raw bytes as a profile file, then advance file and directory mtimes."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / file_name
        path.write_bytes(data)
        self.clock.touch(path)
        self.clock.touch(directory)
        return path

    def write(
        self,
        directory: Path,
        file_stem: str | None = None,
        extension: str = ".mobileprovision",
        **fields,
    ) -> Path:
        """Write a profile file and return its path.

        Keyword arguments are passed to :meth:`document`; the file is named
        after the UUID unless file_stem is given.
        """
        doc = self.document(**fields)
        file_name = f"{file_stem or doc['UUID']}{extension}"
        return self.write_bytes(directory, file_name, self.encode(doc))

    def remove(self, path: Path) -> None:
        """Delete a profile file and advance its directory's mtime."""
        path.unlink()
        self.clock.touch(path.parent)


class CountingLoader:
    """Profile loader that records every file it parses."""

    def __init__(self) -> None:
        self.calls: list[Path] = []
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, path: Path) -> MobileProvision:
        with self._lock:
            self.calls.append(Path(path))
        return load_from_file(path)


@pytest.fixture
def temp_storage_dir() -> Generator[Path, None, None]:
    """Create temporary storage directory for tests.

    Yields:
        Path to temporary directory that is cleaned up after test
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_storage_env(temp_storage_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point PROVISIOND_HOME at a temp directory.

    This ensures tests use isolated storage and don't interfere with
    real data or other tests.

    Returns:
        Path to temporary storage directory
    """
    monkeypatch.setenv("PROVISIOND_HOME", str(temp_storage_dir))
    for name in (
        "PROVISIOND_CONFIG_DIR",
        "PROVISIOND_CACHE_DIR",
        "PROVISIOND_CACHE_PATH",
        "PROVISIOND_PROFILE_DIRECTORIES",
        "PROVISIOND_HOST",
        "PROVISIOND_PORT",
        "PROVISIOND_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return temp_storage_dir


@pytest.fixture(autouse=True)
def _isolated_default_handles() -> Generator[None, None, None]:
    """Drop process-wide index handles between tests."""
    reset_default_handles()
    yield
    reset_default_handles()


@pytest.fixture
def clock() -> FileClock:
    return FileClock()


@pytest.fixture
def profile_writer(clock: FileClock) -> ProfileWriter:
    return ProfileWriter(clock)


@pytest.fixture
def certificate_factory():
    """Factory for self-signed developer certificates."""
    return make_certificate


@pytest.fixture
def counting_loader() -> CountingLoader:
    return CountingLoader()


@pytest.fixture
def profile_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "profiles"
    directory.mkdir()
    return directory


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "Provisioning Profiles.index"


@pytest.fixture
def index_handle(profile_dir: Path, cache_path: Path, counting_loader: CountingLoader) -> IndexHandle:
    """Index handle over the temporary profile directory."""
    return IndexHandle([profile_dir], cache_path, loader=counting_loader)
