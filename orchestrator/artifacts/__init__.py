"""
Module 07 - Output Artifacts

Writing, loading and offline verification of distribution output
directories.
"""

from orchestrator.artifacts.index import (
    FORMAT_VERSION,
    PROTOCOL_VERSION,
    REQUIRED_FILES,
    ArtifactFileEntry,
    ArtifactIndex,
    parse_format_version,
    is_compatible_format_version,
)

from orchestrator.artifacts.io import (
    MERKLE_PROOFS_FILE,
    DEPLOYMENT_INFO_FILE,
    DISTRIBUTION_MANIFEST_FILE,
    ARTIFACT_INDEX_FILE,
    FILE_MAP,
    ArtifactIOError,
    ArtifactMissingFileError,
    dump_json,
    compute_sha256,
    build_proofs_document,
    build_deployment_info,
    write_distribution,
    load_manifest,
    load_artifact_index,
    validate_artifact_files,
    verify_output_dir,
)

__all__ = [
    # Index
    "FORMAT_VERSION",
    "PROTOCOL_VERSION",
    "REQUIRED_FILES",
    "ArtifactFileEntry",
    "ArtifactIndex",
    "parse_format_version",
    "is_compatible_format_version",
    # IO
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
