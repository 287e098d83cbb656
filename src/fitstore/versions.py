"""Protocol versions served by the resource cache."""

from __future__ import annotations

from enum import Enum


class ProtocolVersion(str, Enum):
    """Data-access protocol version.

    The value doubles as the leading path segment of every cache key.
    """

    V10 = "V10"
    V20 = "V20"
    V30 = "V30"
    V40 = "V40"

    @classmethod
    def parse(cls, value: str | ProtocolVersion) -> ProtocolVersion:
        """Parse "V40", "v40", "4.0" or "4" into a ProtocolVersion.

        Raises:
            ValueError: If the value names no known version.
        """
        if isinstance(value, ProtocolVersion):
            return value
        text = str(value).strip().upper()
        if not text.startswith("V"):
            major, _, minor = text.partition(".")
            text = f"V{major}{minor or '0'}"
        try:
            return cls(text)
        except ValueError:
            known = ", ".join(v.value for v in cls)
            msg = f"Unknown protocol version {value!r}, expected one of: {known}"
            raise ValueError(msg) from None
