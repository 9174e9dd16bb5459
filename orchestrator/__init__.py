"""
Module 06 - Distribution Pipeline

In-process runner that turns a claims file into a verified distribution
manifest, plus the statistics and step executor it is built from.

Public API:
- DistributionPipeline: Main pipeline runner class
- PipelineConfig: Configuration for pipeline execution
- RunResult: Complete result of a pipeline run
- create_pipeline: Build a pipeline from a RuntimeConfig
- DistributionStatistics: Reward distribution summary
- StepExecutor / PipelineState: Composable stage execution
"""

from orchestrator.pipeline import (
    DistributionPipeline,
    PipelineConfig,
    RunResult,
    create_pipeline,
)
from orchestrator.statistics import DistributionStatistics
from orchestrator.steps import (
    FunctionStep,
    PipelineState,
    PipelineStep,
    StepExecutor,
    make_step,
)


__all__ = [
    # Main pipeline
    "DistributionPipeline",
    "PipelineConfig",
    "RunResult",
    "create_pipeline",
    # Statistics
    "DistributionStatistics",
    # Step executor
    "StepExecutor",
    "PipelineStep",
    "FunctionStep",
    "PipelineState",
    "make_step",
]
