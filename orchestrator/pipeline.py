"""
Module 06 - Distribution Pipeline

Deterministic, in-process runner composing ingestion, leaf encoding,
tree construction and manifest emission.

Key features:
- Collect-then-build: the tree is built only from a finished ClaimSet
- Fail-closed: fatal errors propagate and nothing is returned for writing
- Every generated proof is re-verified before the run reports success
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from core.claims.ingest import ClaimIngestor, IngestionReport
from core.claims.sources import (
    DEFAULT_ADDRESS_COLUMN,
    DEFAULT_AMOUNT_COLUMN,
    RawRecord,
    read_csv_records,
)
from core.config.runtime import DEFAULT_TOKEN_ADDRESSES, RuntimeConfig
from core.distribution.emitter import emit_manifest, verify_manifest
from core.distribution.manifest import DistributionManifest, TokenInfo
from core.merkle.leaves import LeafEncoding
from core.merkle.merkle_proofs import MerkleProver
from core.merkle.merkle_tree import MerkleTree, OddNodePolicy
from core.schemas.claims import ClaimSet
from core.schemas.verification import CheckResult, VerificationResult

from orchestrator.statistics import DistributionStatistics
from orchestrator.steps import PipelineState, StepExecutor, make_step


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class PipelineConfig:
    """Configuration for pipeline execution."""

    # Token
    token_symbol: str = "USDC"
    decimals: int = 6
    token_addresses: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOKEN_ADDRESSES))

    # Input
    address_column: str = DEFAULT_ADDRESS_COLUMN
    amount_column: str = DEFAULT_AMOUNT_COLUMN
    input_encoding: str = "utf-8-sig"
    strict_precision: bool = False

    # Tree
    leaf_encoding: LeafEncoding = LeafEncoding.PACKED
    odd_node_policy: OddNodePolicy = OddNodePolicy.CARRY

    @property
    def token(self) -> TokenInfo:
        return TokenInfo(symbol=self.token_symbol, decimals=self.decimals)

    @classmethod
    def from_runtime(cls, config: RuntimeConfig) -> "PipelineConfig":
        """Derive pipeline settings from a loaded runtime configuration."""
        return cls(
            token_symbol=config.token.symbol,
            decimals=config.token.decimals,
            token_addresses=dict(config.token.addresses),
            address_column=config.input.address_column,
            amount_column=config.input.amount_column,
            input_encoding=config.input.encoding,
            strict_precision=config.input.strict_precision,
            leaf_encoding=config.tree.leaf_encoding,
            odd_node_policy=config.tree.odd_node_policy,
        )


# =============================================================================
# Run Result
# =============================================================================

@dataclass
class RunResult:
    """Complete result of a pipeline run."""
    claims: Optional[ClaimSet] = None
    report: Optional[IngestionReport] = None
    tree: Optional[MerkleTree] = None
    manifest: Optional[DistributionManifest] = None
    verification: Optional[VerificationResult] = None
    statistics: Optional[DistributionStatistics] = None
    ok: bool = False
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    timings: dict[str, float] = field(default_factory=dict)

    @property
    def merkle_root(self) -> Optional[str]:
        return self.manifest.merkle_root if self.manifest else None

    @property
    def claim_count(self) -> int:
        return len(self.claims) if self.claims else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "merkle_root": self.merkle_root,
            "total_allocation": str(self.manifest.total_allocation) if self.manifest else None,
            "claim_count": self.claim_count,
            "tree_depth": self.manifest.tree_depth if self.manifest else None,
            "ingestion": self.report.to_dict() if self.report else None,
            "statistics": self.statistics.to_dict() if self.statistics else None,
            "errors": self.errors,
            "check_count": len(self.checks),
        }


# =============================================================================
# Pipeline Class
# =============================================================================

class DistributionPipeline:
    """
    Runs ingest -> encode -> build tree -> emit manifest -> verify.

    Stages run strictly in sequence. A fatal error in any stage is
    re-raised to the caller after being logged; soft row errors are
    reported in ``RunResult.report``.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self._executor = StepExecutor()

    def _build_steps(self) -> list:
        return [
            make_step("ingest", self._step_ingest),
            make_step("build_tree", self._step_build_tree),
            make_step("emit_manifest", self._step_emit_manifest),
            make_step("verify_manifest", self._step_verify_manifest),
        ]

    def _step_ingest(self, state: PipelineState) -> PipelineState:
        ingestor = ClaimIngestor(
            self.config.decimals,
            strict_precision=self.config.strict_precision,
        )
        state.report = ingestor.report
        ingestor.consume(state.records or ())
        state.claims = ingestor.finalize()
        state.add_check(CheckResult.passed(
            "ingestion",
            f"{state.report.accepted} of {state.report.total_rows} rows accepted",
            state.report.to_dict(),
        ))
        return state

    def _step_build_tree(self, state: PipelineState) -> PipelineState:
        logger.info(f"Generating Merkle tree for {len(state.claims)} claims")
        state.tree = MerkleProver.build_tree(
            state.claims,
            self.config.leaf_encoding,
            self.config.odd_node_policy,
        )
        logger.info(
            f"Merkle tree generated: root 0x{state.tree.root.hex()}, depth {state.tree.depth}"
        )
        return state

    def _step_emit_manifest(self, state: PipelineState) -> PipelineState:
        state.manifest = emit_manifest(
            state.claims,
            state.tree,
            self.config.token,
            self.config.leaf_encoding,
        )
        return state

    def _step_verify_manifest(self, state: PipelineState) -> PipelineState:
        state.verification = verify_manifest(state.manifest)
        state.merge_verification(state.verification)
        return state

    def run(self, records: Iterable[RawRecord]) -> RunResult:
        """
        Execute the full pipeline over a record stream.

        Raises:
            NoValidClaimsException: If ingestion accepted nothing
            MalformedInputException: If the input cannot be interpreted
            ManifestInconsistencyException: If a proof fails self-verification
        """
        state = PipelineState(records=records)
        state = self._executor.execute(self._build_steps(), state)

        if state.exception is not None:
            raise state.exception

        result = RunResult(
            claims=state.claims,
            report=state.report,
            tree=state.tree,
            manifest=state.manifest,
            verification=state.verification,
            ok=state.ok,
            checks=state.checks,
            errors=state.errors,
            timings=self._executor.timings,
        )
        if state.claims is not None:
            result.statistics = DistributionStatistics.from_claims(
                state.claims, self.config.decimals
            )
        return result

    def run_csv(self, path: str | Path) -> RunResult:
        """Execute the pipeline over a CSV file."""
        records = read_csv_records(
            path,
            address_column=self.config.address_column,
            amount_column=self.config.amount_column,
            encoding=self.config.input_encoding,
        )
        return self.run(records)


def create_pipeline(config: Optional[RuntimeConfig] = None, **overrides: Any) -> DistributionPipeline:
    """
    Build a pipeline from a runtime configuration.

    Keyword overrides replace individual PipelineConfig fields, e.g. the
    CLI's ``--decimals`` flag.
    """
    runtime = config or RuntimeConfig()
    pipeline_config = PipelineConfig.from_runtime(runtime)
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(pipeline_config, key):
            raise TypeError(f"Unknown pipeline option: {key}")
        setattr(pipeline_config, key, value)
    pipeline_config.leaf_encoding = LeafEncoding(pipeline_config.leaf_encoding)
    pipeline_config.odd_node_policy = OddNodePolicy(pipeline_config.odd_node_policy)
    return DistributionPipeline(pipeline_config)


__all__ = [
    "PipelineConfig",
    "RunResult",
    "DistributionPipeline",
    "create_pipeline",
]
