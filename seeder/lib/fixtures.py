"""Fixture definitions and the orchestrator that loads them.

A fixture names a table and the files to seed it from:

    fixtures:
      - table: Users
        sources: [./fixtures/users.json]      # plain JSON/YAML items
        rawsources: [./fixtures/raw.yml]      # typed attribute values
        stage: dev                            # only load on this stage
        enable: cli                           # true | false | cli | deploy
        concurrentWrites: 10                  # default 5

Eligibility checks run first, then every source of every eligible fixture
is loaded concurrently. Failures are collected and reported together once
all work has settled.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from seeder.lib.backend import WriteTarget, WriteVariant
from seeder.lib.errors import ConfigurationError, FixtureLoadError, SeederError
from seeder.lib.loader import DispatchResult, load_source
from seeder.lib.writer import BatchWriter

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_CONCURRENT_WRITES",
    "InvocationMode",
    "FixtureDefinition",
    "SourceTask",
    "FixturePlan",
    "LoadReport",
    "is_enabled",
    "plan_fixture",
    "load_all",
]

DEFAULT_CONCURRENT_WRITES = 5


class InvocationMode(Enum):
    """What triggered the load."""

    CLI = "cli"  # run by hand
    DEPLOY = "deploy"  # run after a deployment


# enable value -> (eligible under cli, eligible under deploy)
ENABLE_MATRIX: Dict[Any, Tuple[bool, bool]] = {
    True: (True, True),
    False: (False, False),
    "cli": (True, False),
    "deploy": (False, True),
    None: (True, False),
}


def is_enabled(enable: Any, mode: InvocationMode) -> bool:
    """Decide whether a fixture runs for the given invocation mode.

    Raises:
        ConfigurationError: If enable is not true, false, "cli", "deploy" or unset
    """
    # 1 == True and 0 == False, so only accept the exact types
    if enable is None or isinstance(enable, (bool, str)):
        flags = ENABLE_MATRIX.get(enable)
    else:
        flags = None

    if flags is None:
        raise ConfigurationError(
            f"Unsupported value for variable enable [{enable}]",
            field="enable",
            value=enable,
            suggestion="Accepted values: true, false, cli, deploy",
        )

    cli, deploy = flags
    return cli if mode is InvocationMode.CLI else deploy


def _as_paths(value: Any, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, Path)):
        return (str(value),)
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    raise ConfigurationError(
        f"{field_name} must be a list of file paths",
        field=field_name,
        value=value,
    )


@dataclass(frozen=True)
class FixtureDefinition:
    """One fixture entry from the configuration."""

    table: Optional[str] = None
    sources: Tuple[str, ...] = ()
    rawsources: Tuple[str, ...] = ()
    stage: Optional[str] = None
    enable: Any = None
    concurrent_writes: Optional[int] = None
    error: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, config: Any) -> "FixtureDefinition":
        """Build a definition from a parsed configuration entry.

        Never raises. A misshapen entry yields a definition whose ``error``
        is reported by plan_fixture.
        """
        if not isinstance(config, dict):
            return cls(error=f"Fixture entries must be mappings, got {type(config).__name__}")

        table = config.get("table")
        stage = config.get("stage")
        fixture = cls(
            table=str(table) if table else None,
            stage=str(stage) if stage is not None else None,
            enable=config.get("enable"),
            concurrent_writes=config.get("concurrentWrites", config.get("concurrent_writes")),
        )

        try:
            return replace(
                fixture,
                sources=_as_paths(config.get("sources"), "sources"),
                rawsources=_as_paths(config.get("rawsources"), "rawsources"),
            )
        except ConfigurationError as e:
            return replace(fixture, error=e.message)

    @property
    def concurrency(self) -> int:
        """Concurrent writes per source; falls back to the default when unset."""
        value = self.concurrent_writes
        if value is None or value == 0:
            return DEFAULT_CONCURRENT_WRITES
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(
                f"concurrentWrites must be a positive integer for table {self.table}",
                field="concurrentWrites",
                value=value,
                table=self.table,
            )
        return value


@dataclass(frozen=True)
class SourceTask:
    """One source file to load into one table."""

    path: str
    target: WriteTarget
    concurrency: int


@dataclass
class FixturePlan:
    """What loading a fixture would do: its source tasks, or why it's skipped."""

    fixture: FixtureDefinition
    tasks: List[SourceTask] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


def plan_fixture(
    fixture: FixtureDefinition,
    mode: InvocationMode,
    stage: str,
) -> FixturePlan:
    """Check a fixture's eligibility and expand it into source tasks.

    A misshapen entry is rejected whatever its enable flag says; after
    that the order is enable, table, sources, stage.

    Raises:
        ConfigurationError: If the fixture is misconfigured
    """
    if fixture.error:
        raise ConfigurationError(fixture.error, table=fixture.table)

    if not is_enabled(fixture.enable, mode):
        return FixturePlan(fixture, skipped_reason=f"disabled for {mode.value}")

    if not fixture.table:
        raise ConfigurationError("Table name not defined", field="table")

    if not fixture.sources and not fixture.rawsources:
        raise ConfigurationError(
            f"Source files not defined for table {fixture.table}",
            field="sources",
            table=fixture.table,
        )

    if fixture.stage and fixture.stage != stage:
        return FixturePlan(fixture, skipped_reason=f"stage {fixture.stage}")

    concurrency = fixture.concurrency
    tasks = [
        SourceTask(path, WriteTarget(fixture.table, WriteVariant.DOCUMENT), concurrency)
        for path in fixture.sources
    ]
    tasks.extend(
        SourceTask(path, WriteTarget(fixture.table, WriteVariant.RAW), concurrency)
        for path in fixture.rawsources
    )
    return FixturePlan(fixture, tasks=tasks)


@dataclass
class LoadReport:
    """Aggregate outcome of a load run."""

    results: List[DispatchResult] = field(default_factory=list)
    skipped: List[FixturePlan] = field(default_factory=list)
    failures: List[BaseException] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def records_loaded(self) -> int:
        return sum(r.record_count for r in self.results if r.succeeded)

    def raise_for_failures(self) -> None:
        """Raise FixtureLoadError listing every failure, if there were any."""
        if self.failures:
            raise FixtureLoadError(
                f"{len(self.failures)} fixture load(s) failed",
                errors=self.failures,
                report=self,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "records_loaded": self.records_loaded,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "results": [r.to_dict() for r in self.results],
            "skipped": [
                {"table": p.fixture.table, "reason": p.skipped_reason}
                for p in self.skipped
            ],
            "failures": [
                e.to_dict() if isinstance(e, SeederError) else {"message": str(e)}
                for e in self.failures
            ],
        }


def _safe_load_source(task: SourceTask, writer: BatchWriter) -> DispatchResult:
    """Wrapper for load_source that turns raised errors into a failed result."""
    try:
        return load_source(task.path, task.target, task.concurrency, writer)
    except Exception as e:
        logger.error("Could not load %s into %s: %s", task.path, task.target, e)
        return DispatchResult(source=task.path, target=task.target, error=e)


def load_all(
    fixtures: Sequence[FixtureDefinition],
    mode: InvocationMode,
    stage: str,
    writer: BatchWriter,
    *,
    raise_on_failure: bool = True,
) -> LoadReport:
    """Load every eligible fixture.

    All sources of all fixtures are loaded concurrently; write concurrency
    within a source is bounded by the fixture's concurrentWrites. A failing
    fixture or source never stops the others.

    Args:
        fixtures: Fixture definitions in configuration order
        mode: Invocation mode used for the enable check
        stage: Current deployment stage
        writer: Chunk writer shared by every source
        raise_on_failure: Raise FixtureLoadError once all work has settled

    Returns:
        LoadReport with per-source results, skipped fixtures and failures
    """
    start = time.time()
    report = LoadReport()
    tasks: List[SourceTask] = []

    for fixture in fixtures:
        try:
            plan = plan_fixture(fixture, mode, stage)
        except ConfigurationError as e:
            logger.error("Invalid fixture configuration: %s", e.message)
            report.failures.append(e)
            continue

        if plan.skipped:
            logger.info(
                "Ignoring fixtures for table %s (%s)", fixture.table, plan.skipped_reason
            )
            report.skipped.append(plan)
            continue

        logger.info("Loading fixtures for table %s", fixture.table)
        tasks.extend(plan.tasks)

    if tasks:
        with ThreadPoolExecutor(
            max_workers=len(tasks), thread_name_prefix="seeder-source"
        ) as executor:
            future_to_task = {
                executor.submit(_safe_load_source, task, writer): task
                for task in tasks
            }
            for future in as_completed(future_to_task):
                result = future.result()
                report.results.append(result)
                if result.error is not None:
                    report.failures.append(result.error)

    report.elapsed_seconds = time.time() - start
    logger.info(
        "Fixture load complete: %d sources loaded, %d skipped fixtures, %d failures",
        sum(1 for r in report.results if r.succeeded),
        len(report.skipped),
        len(report.failures),
    )

    if raise_on_failure:
        report.raise_for_failures()
    return report
