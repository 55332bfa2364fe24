from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import yaml
from pydantic import ValidationError

from hostwatch.config import Settings
from hostwatch.db.snapshot_store import SnapshotStore
from hostwatch.engine import CollectorSet, RunOrchestrator, RunState, ThresholdConfig
from hostwatch.engine.orchestrator import EXIT_FAILED
from hostwatch.logging_setup import configure_logging
from hostwatch.notify.mailer import MailNotifier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostwatch",
        description="Run one host health check and mail any alerts.",
    )
    parser.add_argument("--env-file", help="read settings from this .env file")
    parser.add_argument("--snapshot-path", help="override the snapshot file location")
    parser.add_argument("--thresholds-file", help="YAML file with threshold overrides")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="evaluate and print alerts without mailing them or saving the snapshot",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.snapshot_path:
        overrides["snapshot_path"] = args.snapshot_path
    if args.thresholds_file:
        overrides["thresholds_file"] = args.thresholds_file
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.env_file:
        return Settings(_env_file=args.env_file, **overrides)
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
        configure_logging(settings.log_file, settings.log_level)
        thresholds = ThresholdConfig.from_settings(settings)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as exc:
        configure_logging(None)
        logger.error("Invalid configuration: %s", exc)
        return EXIT_FAILED

    notifier = MailNotifier.from_settings(settings) if settings.mail_enabled else None
    orchestrator = RunOrchestrator(
        settings=settings,
        thresholds=thresholds,
        store=SnapshotStore(settings.snapshot_path),
        collectors=CollectorSet.from_settings(settings, thresholds),
        notifier=notifier,
        dry_run=args.dry_run,
    )

    logger.info("hostwatch run started on %s", settings.host_name)
    result = asyncio.run(orchestrator.run())

    if args.dry_run:
        for alert in result.alerts:
            print(alert)

    if result.state is RunState.FAILED:
        logger.error("hostwatch run failed: %s", result.error)
    else:
        logger.info(
            "hostwatch run finished: %d alert(s), degraded=%s",
            len(result.alerts), result.degraded or "none",
        )
    return result.exit_code


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
