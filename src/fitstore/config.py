"""
Runtime configuration for fitstore.

Values come from keyword arguments or, via FitStoreConfig.from_env(),
from FITSTORE_* environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from fitstore.versions import ProtocolVersion

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass
class FitStoreConfig:
    """Resource cache configuration.

    Attributes:
        resource_root: Directory holding the read-only reference fixtures.
            None selects the fixtures bundled with the package.
        default_version: Protocol version used when callers do not name one.
        log_level: Root log level name.
        json_logs: Emit JSON log lines instead of the readable format.
    """

    resource_root: Path | None = None
    default_version: ProtocolVersion = ProtocolVersion.V40
    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        self.default_version = ProtocolVersion.parse(self.default_version)
        if self.resource_root is not None:
            self.resource_root = Path(self.resource_root)
            if not self.resource_root.is_dir():
                raise ValueError(f"resource_root must be a directory, got {self.resource_root}")
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"log_level must be a logging level name, got {self.log_level!r}")

    @classmethod
    def from_env(cls) -> FitStoreConfig:
        """Build configuration from FITSTORE_* environment variables."""
        root = os.environ.get("FITSTORE_RESOURCE_ROOT", "")
        return cls(
            resource_root=Path(root) if root else None,
            default_version=ProtocolVersion.parse(
                os.environ.get("FITSTORE_DEFAULT_VERSION", ProtocolVersion.V40.value)
            ),
            log_level=os.environ.get("FITSTORE_LOG_LEVEL", "INFO"),
            json_logs=_parse_bool("FITSTORE_LOG_JSON", os.environ.get("FITSTORE_LOG_JSON", "1")),
        )
