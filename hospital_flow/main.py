from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from hospital_flow.bootstrap.startup import initialize_database, load_state
from hospital_flow.config import LOG_DIR, settings
from hospital_flow.container import Container, build_container
from hospital_flow.infrastructure.db.session import engine


def _setup_logging(level: str = "INFO") -> Path:
    log_path = LOG_DIR / "app.log"
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)
    return log_path


def _install_exception_hook() -> None:
    def _handle_exception(exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logging.getLogger(__name__).error("Unhandled exception", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _handle_exception


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="hospital-flow", description="Hospital patient-flow simulator")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run one decision tick and one sterilization sweep, then exit",
    )
    return parser.parse_args(argv)


async def _run_once(container: Container) -> None:
    orchestrator = container.orchestrator
    try:
        report = await orchestrator.decision_tick()
        completed = orchestrator.sweep_tick()
    finally:
        await orchestrator.aclose()
    logger = logging.getLogger(__name__)
    logger.info(
        "Decision tick: %d applied, %d skipped%s",
        len(report.applied),
        len(report.skipped),
        f", error: {report.error}" if report.error else "",
    )
    logger.info("Sweep tick: %d set(s) completed", len(completed))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    log_path = _setup_logging(settings.log_level)
    _install_exception_hook()
    logging.getLogger(__name__).info("Logging to %s", log_path)

    if not initialize_database(engine):
        return 1
    container = build_container()
    load_state(container)

    try:
        if args.once:
            asyncio.run(_run_once(container))
        else:
            asyncio.run(container.orchestrator.run_forever())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
