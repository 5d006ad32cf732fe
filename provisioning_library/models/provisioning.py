"""Platform and distribution classification of provisioning profiles."""

from __future__ import annotations

from enum import Enum
from enum import IntFlag

MOBILE_PROFILE_EXTENSION = ".mobileprovision"
DESKTOP_PROFILE_EXTENSION = ".provisionprofile"
PROFILE_EXTENSIONS = (MOBILE_PROFILE_EXTENSION, DESKTOP_PROFILE_EXTENSION)


class Platform(str, Enum):
    """Platform a provisioning profile can target.

    Values are the names persisted in the index file.
    """

    MACOS = "MacOS"
    IOS = "iOS"
    TVOS = "tvOS"

    @property
    def file_extension(self) -> str:
        """Canonical profile file extension for this platform."""
        if self is Platform.MACOS:
            return DESKTOP_PROFILE_EXTENSION
        return MOBILE_PROFILE_EXTENSION

    @classmethod
    def from_document(cls, value: str) -> Platform | None:
        """Map a profile document's ``Platform`` entry, or None when unknown.

        Profile documents spell macOS as "OSX".
        """
        return _DOCUMENT_PLATFORMS.get(value)

    @classmethod
    def from_extension(cls, extension: str) -> Platform | None:
        """Platform implied by a profile file extension (case-insensitive)."""
        extension = extension.lower()
        if extension == DESKTOP_PROFILE_EXTENSION:
            return cls.MACOS
        if extension == MOBILE_PROFILE_EXTENSION:
            return cls.IOS
        return None


_DOCUMENT_PLATFORMS = {
    "OSX": Platform.MACOS,
    "iOS": Platform.IOS,
    "tvOS": Platform.TVOS,
}


class DistributionType(IntFlag):
    """Intended audience of a provisioning profile.

    ANY is a query sentinel meaning "match every type"; it must never be
    tested with a bitwise AND.
    """

    ANY = 0
    DEVELOPMENT = 1 << 0
    AD_HOC = 1 << 1
    IN_HOUSE = 1 << 2
    APP_STORE = 1 << 3

    def to_name(self) -> str:
        """Stable textual form, e.g. "DEVELOPMENT|AD_HOC" or "ANY"."""
        names = [member.name for member in _SINGLE_FLAGS if member & self]
        return "|".join(names) if names else "ANY"

    @classmethod
    def from_name(cls, text: str) -> DistributionType:
        """Parse the form produced by :meth:`to_name`.

        Raises:
            ValueError: If any component is not a known flag name
        """
        value = cls.ANY
        for part in text.split("|"):
            part = part.strip().upper()
            if part not in cls.__members__:
                raise ValueError(f"Unknown distribution type: {text!r}")
            value |= cls[part]
        return value


_SINGLE_FLAGS = (
    DistributionType.DEVELOPMENT,
    DistributionType.AD_HOC,
    DistributionType.IN_HOUSE,
    DistributionType.APP_STORE,
)
