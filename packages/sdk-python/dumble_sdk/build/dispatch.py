"""
Task Dispatch
=============

Runs every task of a matrix concurrently and reduces their outcomes into a
single BuildReport.

Tasks are independent once the registry is frozen: a failing task never
cancels its siblings. Each task returns a TaskOutcome; the report's error
count (and so the process exit code) is the sum over all of them.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dumble_common import BuildFailure, UndeclaredDependencyError
from dumble_common.constants import MAX_EXIT_STATUS
from dumble_common.logger import get_logger, set_task_id
from dumble_schema import BuildOptions, Diagnostic, PackageManifest, TsConfig

from ..engines.base import BuildContext, BuildResult, BundleEngine
from .diagnostics import DiagnosticsReporter
from .matrix import BuildMatrix, BuildTask, build_matrix

logger = get_logger(__name__)


@dataclass
class TaskOutcome:
    """What happened to one task."""

    task: BuildTask
    result: Optional[BuildResult] = None
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)
    exception: Optional[BaseException] = None
    """Unexpected (non-engine) error raised while building the task"""

    @property
    def error_count(self) -> int:
        return len(self.errors) + (1 if self.exception is not None else 0)

    @property
    def succeeded(self) -> bool:
        return self.error_count == 0


@dataclass
class BuildReport:
    """Aggregate of every task outcome."""

    outcomes: List[TaskOutcome] = field(default_factory=list)
    matrix: Optional[BuildMatrix] = None

    @property
    def error_count(self) -> int:
        return sum(outcome.error_count for outcome in self.outcomes)

    @property
    def warning_count(self) -> int:
        return sum(len(outcome.warnings) for outcome in self.outcomes)

    @property
    def exit_code(self) -> int:
        """Error count clamped to a valid process exit status, so 256 errors never exit 0."""
        return min(self.error_count, MAX_EXIT_STATUS)

    @property
    def succeeded(self) -> bool:
        return self.error_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": len(self.outcomes),
            "errors": self.error_count,
            "warnings": self.warning_count,
            "failed": [outcome.task.task_id for outcome in self.outcomes if not outcome.succeeded],
        }


async def run_task(
    engine: BundleEngine,
    task: BuildTask,
    reporter: DiagnosticsReporter,
) -> TaskOutcome:
    """
    Build one task and report its diagnostics.

    Engine failures and unexpected exceptions are caught here, so the
    caller always gets an outcome back.
    """
    set_task_id(task.task_id)
    reporter.show_entry(task.source_file, task.output_file)
    outcome = TaskOutcome(task=task)

    try:
        result = await engine.build(task, BuildContext(task))
        outcome.result = result
        outcome.warnings = list(result.warnings)
    except BuildFailure as failure:
        outcome.errors = list(failure.errors)
        outcome.warnings = list(failure.warnings)
        if not outcome.errors:
            outcome.errors = [Diagnostic.error(failure.message)]
    except UndeclaredDependencyError as e:
        outcome.errors = [Diagnostic.error(e.message)]
    except Exception as e:
        logger.exception("Task failed unexpectedly", error=str(e))
        reporter.show_exception(task.task_id, e)
        outcome.exception = e

    reporter.show_all(outcome.errors)
    reporter.show_all(outcome.warnings)
    logger.debug(
        "Task finished",
        errors=outcome.error_count,
        warnings=len(outcome.warnings),
    )
    return outcome


async def dispatch(
    matrix: BuildMatrix,
    engine: BundleEngine,
    reporter: Optional[DiagnosticsReporter] = None,
) -> BuildReport:
    """
    Build every task of a matrix concurrently.

    Args:
        matrix: Tasks and their frozen registry
        engine: Engine each task is submitted to
        reporter: Output sink; a stdout reporter by default

    Returns:
        BuildReport with one outcome per task, in matrix order
    """
    reporter = reporter or DiagnosticsReporter()
    outcomes = await asyncio.gather(
        *(run_task(engine, task, reporter) for task in matrix.tasks)
    )
    report = BuildReport(outcomes=list(outcomes), matrix=matrix)
    logger.info("Build finished", **report.to_dict())
    return report


async def build_package(
    cwd: Path,
    manifest: PackageManifest,
    tsconfig: TsConfig,
    engine: BundleEngine,
    options: Optional[BuildOptions] = None,
    reporter: Optional[DiagnosticsReporter] = None,
    include_private: bool = False,
) -> BuildReport:
    """Resolve the task matrix of a package, then dispatch it."""
    matrix = await build_matrix(cwd, manifest, tsconfig, options, include_private)
    return await dispatch(matrix, engine, reporter)
