"""Application entry point — polls the configured endpoint on an interval."""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from httpsource.client import HttpAPIClient
from httpsource.config import Config, load_config
from httpsource.extraction import build_extractor
from httpsource.models import Record
from httpsource.runner import PollRunner
from httpsource.storage import OffsetStore, init_db

logger = logging.getLogger("httpsource")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Attach a stderr handler to the root logger, formatted as JSON or plain text."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def write_records(records: list[Record], stream=None) -> None:
    """Write records to stdout as JSON lines."""
    stream = stream or sys.stdout
    for record in records:
        line = {
            "topic": record.topic,
            "partition": record.partition.as_dict(),
            "offset": dict(record.offset),
            "key": record.key,
            "value": record.value,
            "headers": dict(record.headers),
        }
        stream.write(json.dumps(line, default=str, ensure_ascii=False) + "\n")
    stream.flush()


def _build_client(config: Config) -> HttpAPIClient:
    options = {"path": config.extractor_path} if config.extractor_path else {}
    client = HttpAPIClient(build_extractor(config.extractor_type, **options))
    client.configure(config.client_settings())
    return client


def _build_scheduler(config: Config, runner: PollRunner) -> BlockingScheduler:
    """Create a scheduler running one poll pass per interval, never overlapping."""
    scheduler = BlockingScheduler()
    scheduler.add_job(
        runner.run_once,
        trigger=IntervalTrigger(seconds=config.poll_interval_seconds),
        id="poll",
        name="HTTP poll",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def main() -> None:
    """Load config, set up logging, and poll until interrupted."""
    config = load_config()

    _setup_logging(config.log_level, config.log_format)

    logger.info(
        "httpsource starting (env=%s, endpoint=%s%s, topic=%s)",
        config.app_env,
        config.server_uri,
        config.endpoint,
        config.topic,
    )

    init_db(config.database_path)

    client = _build_client(config)
    stop = threading.Event()
    runner = PollRunner(
        client,
        config.topic,
        OffsetStore(config.database_path, config.topic),
        write_records,
        items_to_poll=config.items_to_poll,
        stop=stop,
    )
    scheduler = _build_scheduler(config, runner)

    def _shutdown(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        stop.set()
        if scheduler.running:
            scheduler.shutdown(wait=False)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        runner.run_once()
        if not stop.is_set():
            scheduler.start()
    finally:
        client.close()
        logger.info("httpsource stopped")


if __name__ == "__main__":
    main()
