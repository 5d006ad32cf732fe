"""Application identifier helpers for profile entitlements."""

from __future__ import annotations

from typing import Any

APPLICATION_IDENTIFIER_KEYS = ("com.apple.application-identifier", "application-identifier")
WILDCARD = "*"


def get_application_identifier(entitlements: dict[str, Any]) -> str:
    """Team-prefixed application identifier, or "" when the entitlements have none.

    macOS profiles use the ``com.apple.`` prefixed key, iOS profiles the bare one.
    """
    for key in APPLICATION_IDENTIFIER_KEYS:
        value = entitlements.get(key)
        if isinstance(value, str):
            return value
    return ""


def strip_team_prefix(application_identifier: str) -> str:
    """Drop the leading "TEAMID." component ("7V723M9SQ5.com.foo.app" -> "com.foo.app")."""
    _, dot, rest = application_identifier.partition(".")
    return rest if dot else application_identifier


def matches_bundle_identifier(application_identifier: str, bundle_identifier: str) -> bool:
    """Check a profile's application identifier against a bundle identifier.

    A trailing wildcard turns the comparison into a prefix match
    ("TEAM.com.example.*" matches "com.example.app" but not "com.examplefoo.app");
    otherwise the identifiers must be equal.

    Args:
        application_identifier: Identifier from the profile, with team prefix
        bundle_identifier: CFBundleIdentifier of the app being signed

    Returns:
        True if the profile can sign the bundle
    """
    identifier = strip_team_prefix(application_identifier)

    if identifier.endswith(WILDCARD):
        return bundle_identifier.startswith(identifier.rstrip(WILDCARD))

    return identifier == bundle_identifier
