"""
Module 07 - Output Artifacts
File: index.py

Purpose: File index for a distribution output directory. Lists each
artifact with its sha256 and size so a copied or published directory can
be checked before its root is trusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from core.schemas.versioning import SCHEMA_VERSION

FORMAT_VERSION = "merkledrop.v1"
PROTOCOL_VERSION = SCHEMA_VERSION

REQUIRED_FILES = frozenset({
    "merkle_proofs",
    "deployment_info",
    "distribution_manifest",
})


@dataclass
class ArtifactFileEntry:
    """Entry describing a single file in the output directory."""
    path: str
    sha256: str
    size: int  # bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "sha256": self.sha256,
            "bytes": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtifactFileEntry":
        entry = cls(
            path=data["path"],
            sha256=data["sha256"],
            size=data.get("bytes", data.get("size", 0)),
        )
        if not isinstance(entry.path, str) or not isinstance(entry.sha256, str):
            raise TypeError(f"File entry path and sha256 must be strings: {data!r}")
        if not isinstance(entry.size, int) or isinstance(entry.size, bool):
            raise TypeError(f"File entry size must be an integer: {data!r}")
        return entry


@dataclass
class ArtifactIndex:
    """Index of the files written for one distribution."""
    format_version: str = FORMAT_VERSION
    protocol_version: str = PROTOCOL_VERSION
    merkle_root: str = ""
    files: dict[str, ArtifactFileEntry] = field(default_factory=dict)
    created_at: str | None = None

    def __post_init__(self) -> None:
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "format_version": self.format_version,
            "protocol_version": self.protocol_version,
            "merkle_root": self.merkle_root,
            "files": {k: v.to_dict() for k, v in self.files.items()},
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtifactIndex":
        files = {
            key: ArtifactFileEntry.from_dict(entry)
            for key, entry in data.get("files", {}).items()
        }
        return cls(
            format_version=data.get("format_version", FORMAT_VERSION),
            protocol_version=data.get("protocol_version", PROTOCOL_VERSION),
            merkle_root=data.get("merkle_root", ""),
            files=files,
            created_at=data.get("created_at"),
        )

    def add_file(self, key: str, path: str, sha256: str, size: int) -> None:
        self.files[key] = ArtifactFileEntry(path=path, sha256=sha256, size=size)

    def get_file(self, key: str) -> ArtifactFileEntry | None:
        return self.files.get(key)

    def has_required_files(self) -> tuple[bool, list[str]]:
        """Check if all required files are listed."""
        missing = sorted(f for f in REQUIRED_FILES if f not in self.files)
        return len(missing) == 0, missing


def parse_format_version(version: str) -> tuple[str, int]:
    """Parse format version string into (prefix, version_number)."""
    if "." not in version:
        return version, 0
    prefix, _, number = version.rpartition(".")
    try:
        num = int(number.lstrip("v"))
    except ValueError:
        num = 0
    return prefix, num


def is_compatible_format_version(version: str) -> bool:
    """Same prefix, and not newer than this implementation."""
    prefix, num = parse_format_version(version)
    current_prefix, current_num = parse_format_version(FORMAT_VERSION)
    return prefix == current_prefix and num <= current_num


__all__ = [
    "FORMAT_VERSION",
    "PROTOCOL_VERSION",
    "REQUIRED_FILES",
    "ArtifactFileEntry",
    "ArtifactIndex",
    "parse_format_version",
    "is_compatible_format_version",
]
