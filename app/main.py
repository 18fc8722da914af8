"""
Process Entry Point for the Ledger Engine

Usage:
    python -m app.main [config_file]

Without a config file, settings come from LEDGER_* environment
variables (and .env), defaulting to ./ctl and ./status.json.

The engine runs until SIGTERM or SIGINT. Pending event waits are
abandoned on shutdown; the status file keeps its last snapshot.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from domestic_ledger.config import (
    ConfigFileError,
    ConfigFormatError,
    LedgerSettings,
    load_settings,
)
from domestic_ledger.orchestrator import ControlLoop, create_app_components
from domestic_ledger.services.control import WatcherError
from domestic_ledger.services.status import SnapshotWriteError


logger = structlog.get_logger("domestic_ledger.main")


def usage(program: str) -> str:
    return f"usage: {program} [config_file]"


def configure_logging(settings: LedgerSettings) -> None:
    """Send structlog output through stdlib logging at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
    )


def install_signal_handlers(loop: asyncio.AbstractEventLoop, control: ControlLoop) -> None:
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, control.request_shutdown)
        except NotImplementedError:
            # no loop signal support on this platform; Ctrl+C still raises KeyboardInterrupt
            pass


async def serve(settings: LedgerSettings) -> None:
    control = create_app_components(settings)
    install_signal_handlers(asyncio.get_running_loop(), control)

    logger.info(
        "engine_started",
        ctl_file=str(settings.ctl_file_path),
        status_file=str(settings.status_path),
    )
    await control.run()
    logger.info("engine_stopped")


def main(argv: Optional[list[str]] = None) -> int:
    """Main application entry point."""
    argv = list(sys.argv if argv is None else argv)
    program = argv[0] if argv else "domestic-ledger"

    if len(argv) > 2:
        print(usage(program), file=sys.stderr)
        return 2

    try:
        settings = load_settings(argv[1] if len(argv) > 1 else None)
    except ConfigFileError as e:
        print(e, file=sys.stderr)
        print(usage(program), file=sys.stderr)
        return 2
    except (ConfigFormatError, ValidationError) as e:
        print(f"config: {e}", file=sys.stderr)
        return 1

    configure_logging(settings)

    try:
        asyncio.run(serve(settings))
    except (WatcherError, SnapshotWriteError) as e:
        logger.critical("engine_failed", error=str(e), error_type=type(e).__name__)
        return 1
    except KeyboardInterrupt:
        logger.info("engine_interrupted")

    return 0


if __name__ == "__main__":
    sys.exit(main())
