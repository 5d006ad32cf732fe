"""Binary persistence for the provisioning profile index.

The index file is a compact binary document: a header (format version and
watermark) followed by a counted list of records. Strings are UTF-8 with a
7-bit variable-length byte count, timestamps are 64-bit tick counts
(100ns units since 0001-01-01 UTC) and counts are 32-bit integers, all
little-endian.

Contract:
- load_index: never raises; any unreadable or malformed file is a cache miss
- save_index: never raises; failures are logged and reported as False
"""

from __future__ import annotations

import logging
import os
import struct
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path

from ..errors import IndexFormatError
from ..models.provisioning import DistributionType
from ..models.provisioning import Platform
from .models import DeveloperCertificate
from .models import ProfileIndex
from .models import ProfileRecord

logger = logging.getLogger(__name__)

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_TICKS_EPOCH = datetime(1, 1, 1, tzinfo=UTC)
_TICKS_PER_MICROSECOND = 10
_MAX_VARINT_BYTES = 5


def to_ticks(value: datetime) -> int:
    """Convert a datetime to UTC ticks (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    else:
        value = value.astimezone(UTC)
    return ((value - _TICKS_EPOCH) // timedelta(microseconds=1)) * _TICKS_PER_MICROSECOND


def from_ticks(ticks: int) -> datetime:
    """Convert UTC ticks back to an aware datetime.

    Raises:
        IndexFormatError: If the tick count is outside the datetime range
    """
    if ticks < 0:
        raise IndexFormatError(f"Negative timestamp: {ticks}")
    try:
        return _TICKS_EPOCH + timedelta(microseconds=ticks // _TICKS_PER_MICROSECOND)
    except OverflowError as e:
        raise IndexFormatError(f"Timestamp out of range: {ticks}") from e


class _IndexWriter:
    """Accumulates the binary encoding of an index."""

    def __init__(self) -> None:
        self.buffer = bytearray()

    def write_int32(self, value: int) -> None:
        self.buffer += _INT32.pack(value)

    def write_datetime(self, value: datetime) -> None:
        self.buffer += _INT64.pack(to_ticks(value))

    def write_string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        length = len(encoded)
        while length >= 0x80:
            self.buffer.append((length & 0x7F) | 0x80)
            length >>= 7
        self.buffer.append(length)
        self.buffer += encoded

    def write_record(self, record: ProfileRecord) -> None:
        self.write_string(record.file_name)
        self.write_datetime(record.last_modified)

        self.write_string(record.name)
        self.write_string(record.uuid)
        self.write_string(record.distribution.to_name())
        self.write_datetime(record.creation_date)
        self.write_datetime(record.expiration_date)

        self.write_int32(len(record.platforms))
        for platform in record.platforms:
            self.write_string(platform.value)

        self.write_string(record.application_identifier)

        self.write_int32(len(record.developer_certificates))
        for certificate in record.developer_certificates:
            self.write_string(certificate.name)
            self.write_string(certificate.thumbprint)


class _IndexReader:
    """Decodes an index from bytes, raising IndexFormatError on any inconsistency."""

    def __init__(self, data: bytes) -> None:
        self.data = memoryview(data)
        self.offset = 0

    @property
    def at_end(self) -> bool:
        return self.offset == len(self.data)

    def _take(self, size: int) -> memoryview:
        end = self.offset + size
        if end > len(self.data):
            raise IndexFormatError(f"Unexpected end of index at byte {self.offset} (wanted {size} bytes)")
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def read_int32(self) -> int:
        return _INT32.unpack(self._take(_INT32.size))[0]

    def read_count(self) -> int:
        count = self.read_int32()
        if count < 0:
            raise IndexFormatError(f"Negative count: {count}")
        return count

    def read_datetime(self) -> datetime:
        return from_ticks(_INT64.unpack(self._take(_INT64.size))[0])

    def read_string(self) -> str:
        length = 0
        shift = 0
        for _ in range(_MAX_VARINT_BYTES):
            byte = self._take(1)[0]
            length |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
            shift += 7
        else:
            raise IndexFormatError("String length prefix is too long")

        try:
            return bytes(self._take(length)).decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexFormatError(f"Invalid UTF-8 string: {e}") from e

    def read_record(self) -> ProfileRecord:
        file_name = self.read_string()
        last_modified = self.read_datetime()

        name = self.read_string()
        uuid = self.read_string()
        try:
            distribution = DistributionType.from_name(self.read_string())
        except ValueError as e:
            raise IndexFormatError(str(e)) from e
        creation_date = self.read_datetime()
        expiration_date = self.read_datetime()

        platforms = []
        for _ in range(self.read_count()):
            value = self.read_string()
            try:
                platforms.append(Platform(value))
            except ValueError as e:
                raise IndexFormatError(f"Unknown platform: {value!r}") from e

        application_identifier = self.read_string()

        certificates = []
        for _ in range(self.read_count()):
            certificates.append(DeveloperCertificate(name=self.read_string(), thumbprint=self.read_string()))

        return ProfileRecord(
            file_name=file_name,
            last_modified=last_modified,
            name=name,
            uuid=uuid,
            distribution=distribution,
            creation_date=creation_date,
            expiration_date=expiration_date,
            platforms=tuple(platforms),
            application_identifier=application_identifier,
            developer_certificates=tuple(certificates),
        )


def encode_index(index: ProfileIndex) -> bytes:
    """Serialize an index to its binary form."""
    writer = _IndexWriter()
    writer.write_int32(index.version)
    writer.write_datetime(index.last_modified)

    writer.write_int32(len(index.records))
    for record in index.records:
        writer.write_record(record)

    return bytes(writer.buffer)


def decode_index(data: bytes) -> ProfileIndex:
    """Deserialize an index from its binary form.

    Raises:
        IndexFormatError: If the data is truncated, malformed or has trailing bytes
    """
    reader = _IndexReader(data)
    version = reader.read_int32()
    last_modified = reader.read_datetime()

    records = [reader.read_record() for _ in range(reader.read_count())]

    if not reader.at_end:
        raise IndexFormatError(f"{len(reader.data) - reader.offset} trailing bytes after last record")

    return ProfileIndex.build(records, last_modified=last_modified, version=version)


def load_index(path: Path) -> ProfileIndex | None:
    """Load a persisted index.

    Args:
        path: Index file location

    Returns:
        The index, or None when the file is missing, unreadable or malformed
    """
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        logger.debug(f"No index file at {path}")
        return None
    except OSError as e:
        logger.warning(f"Failed to read index '{path}': {e}")
        return None

    try:
        index = decode_index(data)
    except IndexFormatError as e:
        logger.warning(f"Discarding corrupt index '{path}': {e}")
        return None

    logger.debug(f"Loaded index from {path}: version={index.version}, records={len(index.records)}")
    return index


def get_temp_path(path: Path) -> Path:
    """Temporary sibling used while saving (".#<stem>.tmp")."""
    path = Path(path)
    return path.with_name(f".#{path.stem}.tmp")


def save_index(index: ProfileIndex, path: Path) -> bool:
    """Persist an index atomically.

    The index is written to a temporary sibling which then replaces the
    destination in a single rename, so readers never observe a partial file.

    Args:
        index: Index to persist
        path: Index file location

    Returns:
        True if saved, False if the failure was logged instead
    """
    path = Path(path)
    temp_path = get_temp_path(path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "wb") as f:
            f.write(encode_index(index))
        os.replace(temp_path, path)
    except (OSError, ValueError, struct.error) as e:
        logger.warning(f"Failed to save '{path}': {e}")
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.debug(f"Failed to remove temporary index '{temp_path}': {cleanup_error}")
        return False

    logger.debug(f"Saved index to {path} ({len(index.records)} records)")
    return True
