"""
Module 06 - Step Executor

Purpose: Keep pipeline stages composable and testable with minimal abstraction.

Provides:
- PipelineStep: Protocol for individual pipeline stages
- PipelineState: Dataclass holding artifacts incrementally
- StepExecutor: Runner that executes stages in sequence

A stage that raises stops the run; the exception is kept on the state
so the pipeline can re-raise it after recording which stage failed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol

from core.claims.ingest import IngestionReport
from core.claims.sources import RawRecord
from core.distribution.manifest import DistributionManifest
from core.merkle.merkle_tree import MerkleTree
from core.schemas.claims import ClaimSet
from core.schemas.verification import CheckResult, VerificationResult


logger = logging.getLogger(__name__)


@dataclass
class PipelineState:
    """
    Holds artifacts incrementally as the pipeline progresses.

    Fields are Optional to allow incremental population.
    """

    # Input
    records: Optional[Iterable[RawRecord]] = None

    # Stage 1: Ingestion
    claims: Optional[ClaimSet] = None
    report: Optional[IngestionReport] = None

    # Stage 2: Tree construction
    tree: Optional[MerkleTree] = None

    # Stage 3: Manifest emission and self-verification
    manifest: Optional[DistributionManifest] = None
    verification: Optional[VerificationResult] = None

    # Aggregated results
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    exception: Optional[BaseException] = None
    ok: bool = True

    def add_check(self, check: CheckResult) -> None:
        """Add a check result to the aggregated checks."""
        self.checks.append(check)
        if not check.ok and check.severity == "error":
            self.ok = False

    def add_checks(self, checks: list[CheckResult]) -> None:
        for check in checks:
            self.add_check(check)

    def add_error(self, error: str) -> None:
        """Add an error message and mark state as not ok."""
        self.errors.append(error)
        self.ok = False

    def merge_verification(self, result: VerificationResult) -> None:
        """Merge a verification result into the state."""
        self.add_checks(result.checks)
        if not result.ok:
            self.ok = False
            if result.error:
                self.add_error(result.error.message)


class PipelineStep(Protocol):
    """A named stage that transforms pipeline state."""

    @property
    def name(self) -> str:
        ...

    def run(self, state: PipelineState) -> PipelineState:
        ...


@dataclass
class FunctionStep:
    """
    Adapter to create a PipelineStep from a plain function.

    Example:
        step = FunctionStep("ingest", lambda s: do_something(s))
    """

    _name: str
    _func: Callable[[PipelineState], PipelineState]

    @property
    def name(self) -> str:
        return self._name

    def run(self, state: PipelineState) -> PipelineState:
        return self._func(state)


class StepExecutor:
    """
    Executor that runs a sequence of PipelineSteps.

    Stops at the first stage that raises or leaves the state not ok.
    """

    def __init__(self) -> None:
        self._step_results: list[tuple[str, bool, Optional[str]]] = []
        self._timings: dict[str, float] = {}

    def execute(
        self,
        steps: list[PipelineStep],
        state: PipelineState,
    ) -> PipelineState:
        """
        Execute all steps in sequence.

        Returns:
            Final pipeline state; ``state.exception`` is set if a stage raised
        """
        self._step_results = []
        self._timings = {}

        for step in steps:
            started = time.perf_counter()
            try:
                state = step.run(state)
            except Exception as e:
                logger.error(f"Stage '{step.name}' failed: {e}")
                state.add_error(f"Stage '{step.name}' failed: {e}")
                state.exception = e
                self._step_results.append((step.name, False, str(e)))
                break
            finally:
                self._timings[step.name] = time.perf_counter() - started

            self._step_results.append((step.name, True, None))
            logger.debug(f"Stage '{step.name}' finished in {self._timings[step.name]:.3f}s")
            if not state.ok:
                break

        return state

    @property
    def step_results(self) -> list[tuple[str, bool, Optional[str]]]:
        """(step_name, success, error_message) per executed stage."""
        return self._step_results.copy()

    @property
    def timings(self) -> dict[str, float]:
        """Wall-clock seconds per executed stage."""
        return dict(self._timings)

    def get_failed_steps(self) -> list[str]:
        return [name for name, success, _ in self._step_results if not success]

    def all_steps_succeeded(self) -> bool:
        return all(success for _, success, _ in self._step_results)


def make_step(name: str, func: Callable[[PipelineState], PipelineState]) -> PipelineStep:
    """Convenience function to create a step from a function."""
    return FunctionStep(name, func)


__all__ = [
    "PipelineState",
    "PipelineStep",
    "FunctionStep",
    "StepExecutor",
    "make_step",
]
