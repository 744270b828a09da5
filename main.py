"""
barsignal - Main Entry Point

Usage:
    python main.py --env dev              # Development mode (synthetic feed on)
    python main.py --env prod             # Production mode
    python main.py --cycles 3 --console   # Run three emit cycles and exit
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from config.config_manager import ConfigManager
from barsignal.application.bootstrap import AppContainer
from barsignal.application.broadcaster import Subscription
from barsignal.infrastructure.observability import SignalMetrics
from barsignal.utils.logging_setup import get_logger, setup_category_logging, shutdown_logging


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tick-to-bar signal engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --env dev                  # Run with the synthetic feed
  python main.py --env prod --console       # Production config, log to console
  python main.py --cycles 5                 # Stop after five emit cycles
        """,
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        help="Environment to run in; selects config/{env}.yaml (default: dev)",
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory holding base.yaml and environment overrides (default: config)",
    )

    parser.add_argument(
        "--console",
        action="store_true",
        help="Also log to the console",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable DEBUG logging",
    )

    parser.add_argument(
        "--cycles",
        type=int,
        default=0,
        help="Stop after this many emit cycles (default: 0, run until interrupted)",
    )

    return parser.parse_args()


async def consume_messages(subscription: Subscription) -> None:
    """Log every broadcast message (stand-in for a client transport)."""
    logger = get_logger("barsignal.application.console")
    async for message in subscription:
        if message.get("type") == "log":
            logger.info(f"[broadcast] {message['data']}")
        else:
            logger.debug(f"[broadcast] {message}")


async def main_async(args: argparse.Namespace) -> None:
    """Main async entry point."""
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    setup_category_logging(
        config.logging,
        env=args.env,
        console=True if args.console else None,
        verbose=args.verbose,
    )
    logger = get_logger(__name__)
    logger.info(f"Starting barsignal (env={args.env})")

    container = AppContainer(config, metrics=SignalMetrics())
    consumer_task = None

    try:
        container.initialize()
        subscription = container.broadcaster.subscribe()
        consumer_task = asyncio.create_task(consume_messages(subscription))

        logger.info(f"Client greeting: {container.message_handler.welcome()}")
        await container.start()

        if args.cycles > 0:
            # The first cycle runs at start; wait out the remaining intervals
            interval = config.signals.emit_interval_sec
            await asyncio.sleep(interval * (args.cycles - 1) + min(interval, 1.0))
        else:
            while True:
                await asyncio.sleep(1)

    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await container.cleanup()
        if consumer_task:
            consumer_task.cancel()
            try:
                await consumer_task
            except asyncio.CancelledError:
                pass
        stats = container.emitter.get_stats() if container.emitter else {}
        logger.info(f"Shutdown complete {stats}")
        shutdown_logging()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("Shutdown requested")
        sys.exit(0)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
