"""Command-line entry point for loading fixtures.

Usage:
    python -m seeder fixtures.yml
    python -m seeder serverless.yml --mode deploy --stage prod
    python -m seeder fixtures.yml --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from seeder.lib.aws import (
    resolve_endpoint_url,
    resolve_region,
    resolve_session,
    resolve_stage,
)
from seeder.lib.backend import DynamoBackend
from seeder.lib.chunking import MAX_CHUNK, chunk
from seeder.lib.config_loader import FixtureConfig, load_config
from seeder.lib.env import load_env_file
from seeder.lib.errors import ConfigurationError, SeederError
from seeder.lib.fixtures import InvocationMode, LoadReport, load_all, plan_fixture
from seeder.lib.logging import setup_logging
from seeder.lib.sources import read_records
from seeder.lib.writer import BatchWriter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seeder",
        description="Load seed fixtures into DynamoDB tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Load fixtures enabled for manual runs
    python -m seeder fixtures.yml --stage dev

    # Load fixtures enabled for post-deploy runs
    python -m seeder serverless.yml --mode deploy --stage prod

    # Show what would be loaded without writing
    python -m seeder fixtures.yml --dry-run

    # Target DynamoDB Local
    python -m seeder fixtures.yml --endpoint-url http://localhost:8000
        """,
    )

    parser.add_argument("config", help="YAML file with a fixtures (or custom.fixtures) list")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in InvocationMode],
        default=InvocationMode.CLI.value,
        help="Invocation mode checked against each fixture's enable flag (default: cli)",
    )
    parser.add_argument("--stage", help="Deployment stage (default: SEEDER_STAGE, config, dev)")
    parser.add_argument("--region", help="AWS region (default: AWS_REGION, config, us-east-1)")
    parser.add_argument("--profile", help="AWS named profile")
    parser.add_argument("--endpoint-url", help="Custom DynamoDB endpoint")
    parser.add_argument("--env-file", help="Load environment variables from this .env file first")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show fixtures, sources and chunk counts without writing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-log", action="store_true", help="Emit JSON log lines and a JSON load report")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def explain_load(config: FixtureConfig, mode: InvocationMode, stage: str) -> bool:
    """Print what a load would do. Returns False if any fixture is invalid."""
    ok = True
    print()
    print("=" * 60)
    print(f"DRY RUN - mode={mode.value} stage={stage}")
    print("=" * 60)

    for fixture in config.fixtures:
        try:
            plan = plan_fixture(fixture, mode, stage)
        except ConfigurationError as e:
            print(f"INVALID  {fixture.table or '<no table>'}: {e.message}")
            ok = False
            continue

        if plan.skipped:
            print(f"SKIP     {fixture.table}: {plan.skipped_reason}")
            continue

        print(f"LOAD     {fixture.table} ({plan.tasks[0].concurrency} concurrent writes)")
        for task in plan.tasks:
            try:
                records = read_records(task.path)
            except SeederError as e:
                print(f"  ! {task.path}: {e.message}")
                ok = False
                continue
            chunks = chunk(records, MAX_CHUNK)
            print(
                f"  - {task.path} [{task.target.variant.value}] "
                f"{len(records)} records, {len(chunks)} chunks"
            )

    print("=" * 60)
    return ok


def print_report(report: LoadReport, json_format: bool = False) -> None:
    """Print a load report in a readable format, or as one JSON line."""
    if json_format:
        print(json.dumps(report.to_dict(), default=str))
        return

    print()
    print("=" * 60)
    print(f"Fixtures: {'SUCCESS' if report.success else 'FAILED'}")
    print("=" * 60)

    for result in sorted(report.results, key=lambda r: (r.target.table, r.source)):
        status = "ok" if result.succeeded else "FAILED"
        print(
            f"{status:<7}{result.target}: {result.source} "
            f"({result.record_count} records, {result.chunks_written}/{result.chunk_count} chunks)"
        )

    for plan in report.skipped:
        print(f"skip   {plan.fixture.table}: {plan.skipped_reason}")

    print(f"Records loaded: {report.records_loaded}")
    print(f"Elapsed: {report.elapsed_seconds:.2f}s")
    print("=" * 60)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        verbose=args.verbose,
        json_format=args.json_log,
        log_file=args.log_file,
    )
    logger = logging.getLogger("seeder")

    if args.env_file:
        load_env_file(args.env_file)

    mode = InvocationMode(args.mode)

    try:
        config = load_config(args.config)
        stage = resolve_stage(args.stage, config.stage)

        if args.dry_run:
            ok = explain_load(config, mode, stage)
            sys.exit(0 if ok else 1)

        if not config.fixtures:
            logger.info("No fixtures configured in %s", args.config)
            return

        region = resolve_region(args.region, config.region)
        session = resolve_session(region=region, profile=args.profile)
        backend = DynamoBackend(session, endpoint_url=resolve_endpoint_url(args.endpoint_url))
        writer = BatchWriter(backend)

        logger.info(
            "Loading %d fixture definitions (mode=%s, stage=%s, region=%s)",
            len(config.fixtures),
            mode.value,
            stage,
            region,
        )
        report = load_all(config.fixtures, mode, stage, writer, raise_on_failure=False)
        print_report(report, json_format=args.json_log)
        report.raise_for_failures()

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)

    except (SeederError, FileNotFoundError) as e:
        logger.error("Fixture load failed: %s", e)
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
