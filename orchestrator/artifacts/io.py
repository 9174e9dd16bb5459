"""
Module 07 - Output Artifacts
File: io.py

Purpose: Write a distribution to disk and load/verify it offline.

Output directory layout:
- merkle-proofs.json           address -> {amount, display_amount, proof, index}
- deployment-info.json         root, totals, token addresses, deployment notes
- distribution-manifest.json   the full DistributionManifest
- artifact-index.json          sha256 and size of the files above (written last)

Every file is serialized into a temporary directory first. A failed build
writes nothing. The files are then moved into place one by one after the
previous index is removed, and the new index is moved last, so a directory
interrupted mid-move has no index and fails verification.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from core.claims.amounts import from_smallest_unit
from core.crypto.hashing import sha256
from core.distribution.emitter import verify_manifest
from core.distribution.manifest import DistributionManifest
from core.schemas.canonical import dumps_pretty, format_decimal
from core.schemas.verification import CheckResult, Finding, VerificationResult
from core.schemas.versioning import (
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

from orchestrator.artifacts.index import ArtifactIndex, is_compatible_format_version
from orchestrator.statistics import DistributionStatistics


logger = logging.getLogger(__name__)


# File name constants
MERKLE_PROOFS_FILE = "merkle-proofs.json"
DEPLOYMENT_INFO_FILE = "deployment-info.json"
DISTRIBUTION_MANIFEST_FILE = "distribution-manifest.json"
ARTIFACT_INDEX_FILE = "artifact-index.json"

FILE_MAP = {
    "merkle_proofs": MERKLE_PROOFS_FILE,
    "deployment_info": DEPLOYMENT_INFO_FILE,
    "distribution_manifest": DISTRIBUTION_MANIFEST_FILE,
}


class ArtifactIOError(Exception):
    """Error during artifact IO operations."""
    pass


class ArtifactMissingFileError(ArtifactIOError):
    """Required file missing from the output directory."""
    def __init__(self, file_key: str):
        self.file_key = file_key
        super().__init__(f"Required file missing: {file_key}")


def dump_json(obj: Any) -> str:
    """Serialize an artifact to indented JSON (keys in insertion order)."""
    if hasattr(obj, "model_dump"):
        return dumps_pretty(obj.model_dump(mode="json", by_alias=True))
    if hasattr(obj, "to_dict"):
        return dumps_pretty(obj.to_dict())
    return dumps_pretty(obj)


def compute_sha256(data: bytes) -> str:
    """Compute SHA-256 hex digest of data."""
    return sha256(data).hex()


def _read_json_file(path: Path) -> tuple[Any, str]:
    """Read JSON file, return (parsed_data, sha256)."""
    data = path.read_bytes()
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArtifactIOError(f"Invalid JSON in {path}: {e}") from e
    return parsed, compute_sha256(data)


# =============================================================================
# Document builders
# =============================================================================

def build_proofs_document(manifest: DistributionManifest) -> dict[str, Any]:
    """Per-address claim data for frontends, in leaf order."""
    return {
        address: {
            "amount": str(record.amount),
            "display_amount": record.display_amount,
            "proof": list(record.proof),
            "index": record.leaf_index,
        }
        for address, record in manifest.proofs.items()
    }


def build_deployment_info(
    manifest: DistributionManifest,
    token_addresses: Optional[Mapping[str, str]] = None,
    statistics: Optional[DistributionStatistics] = None,
) -> dict[str, Any]:
    """Parameters and instructions for deploying the distributor contract."""
    symbol = manifest.token.symbol
    total_human = format_decimal(
        from_smallest_unit(manifest.total_allocation, manifest.token.decimals)
    )
    info: dict[str, Any] = {
        "merkle_root": manifest.merkle_root,
        "total_allocation": str(manifest.total_allocation),
        "total_claims": manifest.claim_count,
        "total_amount": total_human,
        "token": {"symbol": symbol, "decimals": manifest.token.decimals},
        "token_addresses": dict(token_addresses or {}),
        "leaf_encoding": manifest.leaf_encoding.value,
        "odd_node_policy": manifest.odd_node_policy.value,
        "deployment_notes": [
            "Deploy the Merkle distributor contract with these parameters:",
            "- token: use the token address for your target network",
            f"- merkle_root: {manifest.merkle_root}",
            f"- total_allocation: {manifest.total_allocation}",
            "",
            f"After deployment, send {total_human} {symbol} to the contract address",
        ],
    }
    if statistics is not None:
        info["statistics"] = statistics.to_dict()
    return info


# =============================================================================
# Writing
# =============================================================================

def write_distribution(
    manifest: DistributionManifest,
    out_dir: str | Path,
    *,
    token_addresses: Optional[Mapping[str, str]] = None,
    statistics: Optional[DistributionStatistics] = None,
    created_at: Optional[str] = None,
) -> Path:
    """
    Write all artifacts for a manifest into ``out_dir``.

    Existing artifact files of the same names are replaced; other files
    in the directory are left alone. The files are moved in one at a
    time, so an interruption can leave old and new files side by side;
    the old index is removed before the first move, so such a directory
    never passes ``verify_output_dir``.

    Args:
        manifest: A manifest that already passed self-verification
        out_dir: Output directory (created if missing)
        token_addresses: Token contract per network for deployment-info.json
        statistics: Optional statistics to embed in deployment-info.json
        created_at: Fixed index timestamp (defaults to now)

    Returns:
        Path to the output directory
    """
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    documents = {
        "merkle_proofs": build_proofs_document(manifest),
        "deployment_info": build_deployment_info(manifest, token_addresses, statistics),
        "distribution_manifest": manifest,
    }
    index = ArtifactIndex(merkle_root=manifest.merkle_root, created_at=created_at)

    with tempfile.TemporaryDirectory(dir=out_path, prefix=".merkledrop-") as tmpdir:
        staging = Path(tmpdir)

        for key, obj in documents.items():
            data = dump_json(obj).encode("utf-8")
            (staging / FILE_MAP[key]).write_bytes(data)
            index.add_file(key, FILE_MAP[key], compute_sha256(data), len(data))

        (staging / ARTIFACT_INDEX_FILE).write_bytes(dump_json(index).encode("utf-8"))

        # Index last: a directory is only trusted once its index matches
        (out_path / ARTIFACT_INDEX_FILE).unlink(missing_ok=True)
        for filename in [*FILE_MAP.values(), ARTIFACT_INDEX_FILE]:
            os.replace(staging / filename, out_path / filename)

    for entry in index.files.values():
        logger.info(f"Saved {entry.path} ({entry.size / 1024:.1f} KB)")
    return out_path


# =============================================================================
# Loading
# =============================================================================

def _manifest_path(path: Path) -> Path:
    if path.is_dir():
        return path / DISTRIBUTION_MANIFEST_FILE
    return path


def load_manifest(path: str | Path) -> DistributionManifest:
    """
    Load a manifest from an output directory or a manifest file.

    Raises:
        ArtifactMissingFileError: If the manifest file does not exist
        ArtifactIOError: If the file is not a valid manifest
    """
    manifest_path = _manifest_path(Path(path))
    if not manifest_path.exists():
        raise ArtifactMissingFileError("distribution_manifest")

    data, _ = _read_json_file(manifest_path)
    if not isinstance(data, dict):
        raise ArtifactIOError(f"Manifest must be a JSON object: {manifest_path}")

    try:
        assert_supported_schema_version(data.get("schema_version", ""))
        return DistributionManifest.model_validate(data)
    except UnsupportedSchemaVersionError as e:
        raise ArtifactIOError(str(e)) from e
    except ValidationError as e:
        raise ArtifactIOError(f"Invalid manifest {manifest_path}: {e}") from e


def load_artifact_index(dir_path: str | Path) -> ArtifactIndex:
    """
    Load the artifact index of an output directory.

    Raises:
        ArtifactMissingFileError: If the index does not exist
        ArtifactIOError: If the index is not valid JSON or has the wrong shape
    """
    index_path = Path(dir_path) / ARTIFACT_INDEX_FILE
    if not index_path.exists():
        raise ArtifactMissingFileError("artifact_index")
    data, _ = _read_json_file(index_path)
    try:
        return ArtifactIndex.from_dict(data)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise ArtifactIOError(f"Malformed artifact index {index_path}: {e!r}") from e


# =============================================================================
# Offline verification
# =============================================================================

def validate_artifact_files(dir_path: str | Path) -> VerificationResult:
    """
    Check every file in an output directory against its index.

    Returns VerificationResult with a check for each file.
    """
    path = Path(dir_path)
    checks: list[CheckResult] = []
    finding: Finding | None = None

    try:
        index = load_artifact_index(path)
    except ArtifactIOError as e:
        return VerificationResult.failure(
            [CheckResult.failed("artifact_index", str(e))],
            finding=Finding(kind="artifact_file", path=ARTIFACT_INDEX_FILE, reason=str(e)),
        )

    if not is_compatible_format_version(index.format_version):
        checks.append(CheckResult.failed(
            "format_version",
            f"Incompatible format version: {index.format_version}",
        ))
        finding = Finding(kind="artifact_file", path=ARTIFACT_INDEX_FILE, reason="format version")
    else:
        checks.append(CheckResult.passed("format_version", "Format version compatible"))

    has_required, missing = index.has_required_files()
    if not has_required:
        checks.append(CheckResult.failed("required_files", f"Missing required files: {missing}"))
        finding = finding or Finding(
            kind="artifact_file", path=ARTIFACT_INDEX_FILE, reason=f"missing {missing}"
        )
    else:
        checks.append(CheckResult.passed("required_files", "All required files listed"))

    for key, entry in index.files.items():
        file_path = path / entry.path
        if not file_path.is_file():
            checks.append(CheckResult.failed(f"hash_{key}", f"{entry.path} not found"))
            finding = finding or Finding(kind="artifact_file", path=entry.path, reason="missing")
            continue
        actual = compute_sha256(file_path.read_bytes())
        if actual == entry.sha256:
            checks.append(CheckResult.passed(f"hash_{key}", f"{entry.path} hash valid"))
        else:
            checks.append(CheckResult.failed(
                f"hash_{key}",
                f"{entry.path} hash mismatch",
                {"expected": entry.sha256, "actual": actual},
            ))
            finding = finding or Finding(
                kind="artifact_file", path=entry.path, reason="sha256 mismatch"
            )

    if all(c.ok for c in checks):
        return VerificationResult.success(checks)
    return VerificationResult.failure(checks, finding=finding)


def _load_companion(path: Path, filename: str) -> tuple[Any, Optional[str]]:
    """Parsed JSON object of a companion file, or (None, reason) if unusable."""
    file_path = path / filename
    if not file_path.is_file():
        return None, "missing"
    try:
        data, _ = _read_json_file(file_path)
    except ArtifactIOError as e:
        return None, str(e)
    if not isinstance(data, dict):
        return None, f"{filename} must be a JSON object"
    return data, None


def _check_companion_files(path: Path, manifest: DistributionManifest) -> VerificationResult:
    """merkle-proofs.json and deployment-info.json must agree with the manifest."""
    checks: list[CheckResult] = []
    finding: Finding | None = None

    proofs, error = _load_companion(path, MERKLE_PROOFS_FILE)
    if error is not None:
        checks.append(CheckResult.failed("merkle_proofs", f"{MERKLE_PROOFS_FILE}: {error}"))
        finding = Finding(kind="artifact_file", path=MERKLE_PROOFS_FILE, reason=error)
    elif proofs == build_proofs_document(manifest):
        checks.append(CheckResult.passed("merkle_proofs", "Proof file matches manifest"))
    else:
        checks.append(CheckResult.failed("merkle_proofs", "Proof file differs from manifest"))
        finding = Finding(kind="artifact_file", path=MERKLE_PROOFS_FILE, reason="differs from manifest")

    info, error = _load_companion(path, DEPLOYMENT_INFO_FILE)
    if error is not None:
        checks.append(CheckResult.failed("deployment_info", f"{DEPLOYMENT_INFO_FILE}: {error}"))
        finding = finding or Finding(kind="artifact_file", path=DEPLOYMENT_INFO_FILE, reason=error)
    else:
        expected = manifest.deployment_parameters()
        actual = {
            "merkle_root": info.get("merkle_root"),
            "total_allocation": info.get("total_allocation"),
            "claim_count": info.get("total_claims"),
        }
        if actual == expected:
            checks.append(CheckResult.passed("deployment_info", "Deployment parameters match manifest"))
        else:
            checks.append(CheckResult.failed(
                "deployment_info",
                "Deployment parameters differ from manifest",
                {"expected": expected, "actual": actual},
            ))
            finding = finding or Finding(
                kind="merkle_root", path=DEPLOYMENT_INFO_FILE, reason="deployment parameters differ"
            )

    if all(c.ok for c in checks):
        return VerificationResult.success(checks)
    return VerificationResult.failure(checks, finding=finding)


def verify_output_dir(path: str | Path) -> VerificationResult:
    """
    Verify a distribution offline.

    For a directory: file hashes against the index, every proof against
    the root, and the companion files against the manifest. For a single
    manifest file: only the manifest's own consistency.
    """
    path = Path(path)
    if not path.exists():
        return VerificationResult.failure(
            [CheckResult.failed("path", f"Not found: {path}")],
            finding=Finding(kind="artifact_file", path=str(path), reason="not found"),
        )

    result = VerificationResult.success()
    if path.is_dir():
        result = result.merge(validate_artifact_files(path))

    try:
        manifest = load_manifest(path)
    except ArtifactIOError as e:
        return result.merge(VerificationResult.failure(
            [CheckResult.failed("manifest_load", str(e))],
            finding=Finding(kind="artifact_file", path=DISTRIBUTION_MANIFEST_FILE, reason=str(e)),
        ))

    result = result.merge(verify_manifest(manifest))
    if path.is_dir():
        result = result.merge(_check_companion_files(path, manifest))

    if result.ok:
        logger.info(f"Verified {manifest.claim_count} claims against root {manifest.merkle_root}")
    else:
        logger.warning(f"Verification failed: {'; '.join(result.get_error_messages())}")
    return result


__all__ = [
    "MERKLE_PROOFS_FILE",
    "DEPLOYMENT_INFO_FILE",
    "DISTRIBUTION_MANIFEST_FILE",
    "ARTIFACT_INDEX_FILE",
    "FILE_MAP",
    "ArtifactIOError",
    "ArtifactMissingFileError",
    "dump_json",
    "compute_sha256",
    "build_proofs_document",
    "build_deployment_info",
    "write_distribution",
    "load_manifest",
    "load_artifact_index",
    "validate_artifact_files",
    "verify_output_dir",
]
