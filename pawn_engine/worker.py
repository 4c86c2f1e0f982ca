"""Pawnshop background worker.

Runs the loan lifecycle jobs (overdue processing, late fees, reminders,
overdue notices, reporting) on their configured schedules until stopped,
or runs a single job once and exits.

Usage:
    pawn-worker run --demo 50
    pawn-worker run-once process_overdue_loans --demo 20 --sink jsonl
    pawn-worker list-jobs
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import dataclass

from pawn_engine.config import NOTIFICATION_SINKS, STORE_BACKENDS, EngineConfig
from pawn_engine.exceptions import ConfigurationError, PawnEngineError
from pawn_engine.generators import PortfolioConfig, PortfolioGenerator
from pawn_engine.jobs.registry import EngineJobs, register_default_jobs
from pawn_engine.logging import setup_logging
from pawn_engine.notifications import (
    ConsoleNotificationSink,
    JsonLinesNotificationSink,
    NotificationService,
    NotificationSink,
)
from pawn_engine.scheduler import Scheduler
from pawn_engine.store import CustomerStore, InMemoryPawnStore, ItemStore, LoanStore

logger = logging.getLogger(__name__)


@dataclass
class Worker:
    """Everything a running worker process owns."""

    config: EngineConfig
    store: LoanStore
    scheduler: Scheduler
    notifications: NotificationService

    def close(self) -> None:
        self.scheduler.stop()
        self.notifications.close()
        close = getattr(self.store, "close", None)
        if close is not None:
            close()


def build_store(config: EngineConfig) -> tuple[LoanStore, ItemStore, CustomerStore]:
    """Create the configured store backend."""
    if config.store == "postgres":
        from pawn_engine.store.postgres import PostgresPawnStore

        store = PostgresPawnStore(config.postgres.connection_string)
        return store, store.item_store, store

    store = InMemoryPawnStore()
    return store, store.item_store, store


def build_sink(config: EngineConfig) -> NotificationSink:
    """Create the configured notification sink."""
    sink = config.notifications.sink
    if sink == "kafka":
        # Only import confluent_kafka when the Kafka sink is in use
        from pawn_engine.notifications.kafka import KafkaNotificationSink

        return KafkaNotificationSink(config.kafka, topic=config.notifications.topic)
    if sink == "jsonl":
        return JsonLinesNotificationSink(config.notifications.outbox_dir)
    return ConsoleNotificationSink()


def build_worker(config: EngineConfig, demo_customers: int = 0) -> Worker:
    """Wire stores, notifications and jobs into a scheduler.

    Parameters
    ----------
    config : EngineConfig
        Worker configuration.
    demo_customers : int
        When positive, fill the in-memory store with a generated portfolio of
        this many customers.

    Returns
    -------
    Worker
        Assembled worker; the scheduler is not started yet.
    """
    loan_store, item_store, customer_store = build_store(config)

    if demo_customers > 0:
        if not isinstance(loan_store, InMemoryPawnStore):
            raise ConfigurationError("--demo requires the memory store backend")
        PortfolioGenerator(seed=config.seed).populate(
            loan_store, PortfolioConfig(num_customers=demo_customers)
        )

    service = NotificationService(customer_store, build_sink(config))
    jobs = EngineJobs.build(loan_store, item_store, customer_store, service, config)

    scheduler = Scheduler(job_timeout=config.scheduler.job_timeout_seconds)
    register_default_jobs(scheduler, jobs, config.jobs)

    return Worker(config=config, store=loan_store, scheduler=scheduler, notifications=service)


def run_forever(worker: Worker) -> None:
    """Start the scheduler and block until SIGINT or SIGTERM."""
    shutdown = threading.Event()

    def _signal_handler(signum: int, frame: object) -> None:
        logger.info("Shutdown requested: signal=%s", signal.Signals(signum).name)
        shutdown.set()

    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        worker.scheduler.start()
        shutdown.wait()
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)
        worker.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pawn-worker",
        description="Run the pawnshop loan lifecycle jobs",
    )
    parser.add_argument(
        "--demo",
        type=int,
        default=0,
        metavar="N",
        help="Populate the in-memory store with N generated customers",
    )
    parser.add_argument(
        "--store",
        choices=STORE_BACKENDS,
        help="Store backend (default: STORE_BACKEND or memory)",
    )
    parser.add_argument(
        "--sink",
        choices=NOTIFICATION_SINKS,
        help="Notification sink (default: NOTIFICATION_SINK or console)",
    )
    parser.add_argument("--seed", type=int, help="Random seed for --demo")
    parser.add_argument("--log-level", type=str, help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        help="Log format (default: LOG_FORMAT or standard)",
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("run", help="Run all enabled jobs on their schedules (default)")
    run_once = commands.add_parser("run-once", help="Run a single job once and exit")
    run_once.add_argument("job", help="Job name, e.g. process_overdue_loans")
    commands.add_parser("list-jobs", help="Show registered jobs and their schedules")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
    return args


def load_config(args: argparse.Namespace) -> EngineConfig:
    """Environment configuration with command-line overrides applied."""
    config = EngineConfig.from_env()
    if args.store:
        config.store = args.store
    if args.sink:
        config.notifications.sink = args.sink
    if args.seed is not None:
        config.seed = args.seed
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_format)

    try:
        worker = build_worker(config, demo_customers=args.demo)
    except PawnEngineError as e:
        logger.error("Worker setup failed: %s", e)
        return 2

    if args.command == "list-jobs":
        for name, stats in worker.scheduler.stats().items():
            state = "enabled" if stats["enabled"] else "disabled"
            print(f"{name:<28} every {stats['interval']}  ({state})")
        worker.close()
        return 0

    if args.command == "run-once":
        try:
            run = worker.scheduler.run_job(args.job)
        except ConfigurationError as e:
            logger.error("%s", e)
            worker.close()
            return 2
        worker.close()
        return 0 if run.success else 1

    logger.info("=" * 60)
    logger.info("Pawnshop worker starting")
    logger.info("Store: %s", config.store)
    logger.info("Notifications: %s", config.notifications.sink)
    logger.info("Branch: %s", config.scheduler.branch_id or "all")
    logger.info("=" * 60)
    run_forever(worker)
    return 0


if __name__ == "__main__":
    sys.exit(main())
