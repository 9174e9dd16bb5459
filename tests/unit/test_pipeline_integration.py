"""
Module 06 - Pipeline Integration Tests

Tests the pipeline runner end to end:
1. Pipeline returns RunResult with all fields
2. The worked two-claim example produces the expected totals and proofs
3. Fatal errors propagate and nothing is returned
4. Large inputs keep exact totals
5. Step executor bookkeeping
"""

from decimal import Decimal

import pytest

from core.claims.sources import records_from_rows
from core.config.runtime import RuntimeConfig
from core.crypto.hashing import to_hex
from core.merkle.leaves import LeafEncoding, hash_leaf
from core.merkle.merkle_proofs import MerkleVerifier
from core.merkle.merkle_tree import OddNodePolicy, merkle_parent
from core.schemas.errors import MalformedInputException, NoValidClaimsException
from core.schemas.verification import CheckResult, VerificationResult
from merkledrop_cli.commands.sample import generate_rows

from orchestrator.pipeline import (
    DistributionPipeline,
    PipelineConfig,
    RunResult,
    create_pipeline,
)
from orchestrator.steps import PipelineState, StepExecutor, make_step

from fixtures.claims import ADDRESS_A, ADDRESS_B, make_address, make_records, make_rows, write_csv


# =============================================================================
# Configuration
# =============================================================================

class TestPipelineConfig:
    """Test PipelineConfig defaults and settings."""

    def test_default_config(self):
        config = PipelineConfig()
        assert config.decimals == 6
        assert config.token_symbol == "USDC"
        assert config.leaf_encoding is LeafEncoding.PACKED
        assert config.odd_node_policy is OddNodePolicy.CARRY
        assert config.strict_precision is False

    def test_from_runtime(self):
        runtime = RuntimeConfig.from_dict({
            "token": {"symbol": "DAI", "decimals": 18},
            "tree": {"leaf_encoding": "abi", "odd_node_policy": "duplicate"},
        })
        config = PipelineConfig.from_runtime(runtime)
        assert config.token.symbol == "DAI"
        assert config.decimals == 18
        assert config.leaf_encoding is LeafEncoding.ABI
        assert config.odd_node_policy is OddNodePolicy.DUPLICATE

    def test_create_pipeline_overrides(self):
        pipeline = create_pipeline(RuntimeConfig(), decimals=2, leaf_encoding="abi", odd_node_policy=None)
        assert pipeline.config.decimals == 2
        assert pipeline.config.leaf_encoding is LeafEncoding.ABI
        assert pipeline.config.odd_node_policy is OddNodePolicy.CARRY

    def test_create_pipeline_unknown_option(self):
        with pytest.raises(TypeError, match="Unknown pipeline option"):
            create_pipeline(colour="blue")


# =============================================================================
# State and executor
# =============================================================================

class TestPipelineState:
    """Test PipelineState management."""

    def test_initial_state(self):
        state = PipelineState()
        assert state.ok is True
        assert len(state.checks) == 0
        assert len(state.errors) == 0

    def test_add_check_failed(self):
        state = PipelineState()
        state.add_check(CheckResult.failed("test_check", "Test failed"))
        assert state.ok is False

    def test_warning_does_not_fail(self):
        state = PipelineState()
        state.add_check(CheckResult.warning("test_check", "Heads up"))
        assert state.ok is True

    def test_merge_verification(self):
        state = PipelineState()
        verification = VerificationResult(
            ok=False,
            checks=[CheckResult.failed("v_check", "Verification failed")],
        )
        state.merge_verification(verification)
        assert state.ok is False
        assert len(state.checks) == 1


class TestStepExecutor:
    """Test StepExecutor step execution."""

    def test_execute_multiple_steps(self):
        executor = StepExecutor()
        steps = [make_step(f"step{i}", lambda s: s) for i in range(3)]
        executor.execute(steps, PipelineState())
        assert len(executor.step_results) == 3
        assert executor.all_steps_succeeded()
        assert set(executor.timings) == {"step0", "step1", "step2"}

    def test_stop_on_exception(self):
        """A raising stage stops the run and is kept on the state."""
        executor = StepExecutor()

        def failing_step(state: PipelineState) -> PipelineState:
            raise ValueError("Step failed")

        steps = [
            make_step("step1", lambda s: s),
            make_step("failing", failing_step),
            make_step("step3", lambda s: s),  # Should not execute
        ]
        state = executor.execute(steps, PipelineState())

        assert len(executor.step_results) == 2
        assert executor.get_failed_steps() == ["failing"]
        assert isinstance(state.exception, ValueError)
        assert not state.ok

    def test_stop_on_failed_state(self):
        executor = StepExecutor()

        def failing_check(state: PipelineState) -> PipelineState:
            state.add_check(CheckResult.failed("x", "nope"))
            return state

        executor.execute([make_step("check", failing_check), make_step("after", lambda s: s)], PipelineState())
        assert [name for name, _, _ in executor.step_results] == ["check"]


# =============================================================================
# End to end
# =============================================================================

class TestPipelineEndToEnd:
    """Full runs over in-memory records and CSV files."""

    def test_worked_example(self):
        """500.50 + 1001.00 USDC: total 1501500000, two proofs of length one."""
        result = DistributionPipeline().run(make_records([
            (ADDRESS_A, "500.50"),
            (ADDRESS_B, "1001.00"),
        ]))

        assert isinstance(result, RunResult)
        assert result.ok
        manifest = result.manifest
        assert manifest.total_allocation == 1_501_500_000
        assert manifest.claim_count == 2
        assert manifest.tree_depth == 1

        leaf_a = hash_leaf(ADDRESS_A, 500_500_000)
        leaf_b = hash_leaf(ADDRESS_B, 1_001_000_000)
        assert manifest.merkle_root == to_hex(merkle_parent(leaf_a, leaf_b))
        assert manifest.proofs[ADDRESS_A].proof == (to_hex(leaf_b),)
        assert manifest.proofs[ADDRESS_B].proof == (to_hex(leaf_a),)
        assert manifest.proofs[ADDRESS_A].display_amount == "500.50"

        assert result.statistics.to_dict()["total"] == "1501.500000"

    def test_run_result_fields(self, sample_csv):
        result = DistributionPipeline().run_csv(sample_csv)
        assert result.claims is not None
        assert result.tree is not None
        assert result.verification.ok
        assert result.report.error_count == 3
        assert result.claim_count == 2
        assert result.merkle_root == result.manifest.merkle_root
        assert set(result.timings) == {"ingest", "build_tree", "emit_manifest", "verify_manifest"}
        data = result.to_dict()
        assert data["total_allocation"] == str(result.manifest.total_allocation)
        assert data["ingestion"]["skipped"]["INVALID_ADDRESS"] == 1

    def test_deterministic_roots(self, tmp_path):
        rows = make_rows(25)
        first = DistributionPipeline().run(records_from_rows(rows))
        second = DistributionPipeline().run(records_from_rows(rows))
        assert first.manifest == second.manifest

    def test_every_proof_verifies(self):
        result = DistributionPipeline().run(records_from_rows(make_rows(17)))
        manifest = result.manifest
        for address, record in manifest.proofs.items():
            assert MerkleVerifier.verify_claim(
                address, record.amount, record.proof, manifest.merkle_root
            )

    def test_abi_duplicate_options(self):
        config = PipelineConfig(leaf_encoding=LeafEncoding.ABI, odd_node_policy=OddNodePolicy.DUPLICATE)
        result = DistributionPipeline(config).run(records_from_rows(make_rows(5)))
        assert result.ok
        assert result.manifest.leaf_encoding is LeafEncoding.ABI
        assert result.manifest.odd_node_policy is OddNodePolicy.DUPLICATE

    def test_single_claim(self):
        result = DistributionPipeline().run(make_records([(make_address(0), "7")]))
        record = result.manifest.proofs[make_address(0)]
        assert record.proof == ()
        assert result.manifest.merkle_root == record.leaf


class TestPipelineFailures:
    """Fatal errors propagate to the caller."""

    def test_no_valid_claims(self):
        with pytest.raises(NoValidClaimsException):
            DistributionPipeline().run(make_records([("bad", "1")]))

    def test_missing_column(self, tmp_path):
        path = write_csv(tmp_path / "in.csv", [(make_address(0), "1")], header=("wallet", "usdc_reward"))
        with pytest.raises(MalformedInputException):
            DistributionPipeline().run_csv(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DistributionPipeline().run_csv(tmp_path / "missing.csv")


@pytest.mark.slow
class TestLargeDistribution:
    """Precision and consistency at scale."""

    def test_ten_thousand_claims_exact_total(self):
        """10,000 varied fractional amounts sum exactly, no float drift."""
        rows = generate_rows(10_000, seed=11)
        expected_usdc = sum(Decimal(amount) for _, amount in rows)
        expected_units = int(expected_usdc * 10**6)

        result = DistributionPipeline().run(records_from_rows(rows))
        assert result.ok
        assert result.manifest.claim_count == 10_000
        assert result.manifest.total_allocation == expected_units
        assert sum(p.amount for p in result.manifest.proofs.values()) == expected_units
        assert result.manifest.tree_depth == 14
        assert result.statistics.to_dict()["total"] == format(expected_usdc.quantize(Decimal("0.000001")), "f")
