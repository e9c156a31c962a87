"""Status generator: periodically publishes block providers to the bar.

Protocol: https://i3wm.org/docs/i3bar-protocol.html
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional, Sequence

from .blocks import PROVIDERS, BlockProvider
from .config import Config, parse_block_list
from .errors import ConfigurationError, I3barError
from .models import Block, Header
from .publisher import StatusPublisher, init

logger = logging.getLogger(__name__)

STOP_SIGNAL = signal.SIGUSR1
CONT_SIGNAL = signal.SIGCONT


def setup_logging(config: Config) -> None:
    """Configure root logging. stdout carries the protocol, so never log there."""
    if config.logging.file:
        handler = logging.FileHandler(config.logging.file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(
        level=config.logging.level.upper(),
        format=config.logging.format,
        handlers=[handler],
        force=True,
    )


def resolve_providers(names: Sequence[str]) -> List[BlockProvider]:
    """Map block names to providers, in display order.

    Raises:
        ConfigurationError: If a name is unknown
    """
    unknown = [name for name in names if name not in PROVIDERS]
    if unknown:
        raise ConfigurationError(
            f"Unknown blocks: {', '.join(unknown)}",
            suggestion=f"Choose from: {', '.join(sorted(PROVIDERS))}",
            context={"field": "blocks", "unknown": unknown}
        )
    return [PROVIDERS[name] for name in names]


class StatusGenerator:
    """Builds a status line from providers and publishes it every interval."""

    def __init__(self, config: Config, publisher: StatusPublisher, providers: Sequence[BlockProvider]):
        """Initialize status generator.

        Args:
            config: Status generator configuration
            publisher: Started publisher owning the output stream
            providers: Block providers in display order
        """
        self.config = config
        self.publisher = publisher
        self.providers = list(providers)
        self._stop = threading.Event()
        self._running = threading.Event()
        self._running.set()

        logger.info("Status generator initialized")

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    def pause(self) -> None:
        """Stop publishing until resume() (the bar is hidden)."""
        logger.info("Pausing status updates")
        self._running.clear()

    def resume(self) -> None:
        logger.info("Resuming status updates")
        self._running.set()

    def stop(self) -> None:
        self._stop.set()
        self._running.set()

    def get_status_blocks(self) -> List[Block]:
        """Get all status blocks for current state.

        A failing provider is logged and skipped for this tick.
        """
        blocks = []
        for provider in self.providers:
            try:
                block = provider()
            except Exception as e:
                logger.error(f"Failed to get {getattr(provider, '__name__', provider)} block: {e}")
                continue
            if block is not None:
                blocks.append(block)
        return blocks

    def tick(self) -> None:
        """Publish one status line and wait for it to be written."""
        self.publisher.publish(self.get_status_blocks())

    def run(self, max_ticks: Optional[int] = None) -> None:
        """Main loop: publish status lines until stop() or a write failure.

        Raises:
            I3barError: If the stream cannot be written (e.g., the bar exited)
        """
        ticks = 0
        try:
            while not self._stop.is_set():
                self._running.wait()
                if self._stop.is_set():
                    break
                self.tick()
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self._stop.wait(self.config.interval)
        except KeyboardInterrupt:
            logger.info("Shutting down status generator")
        finally:
            # The array stays open; only drain what is queued
            self.publisher.close(timeout=5)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i3barjson",
        description="Stream status lines to i3bar/swaybar using the i3bar JSON protocol",
    )
    parser.add_argument("--interval", type=float, help="Seconds between updates")
    parser.add_argument("--blocks", help=f"Comma-separated blocks to show ({', '.join(sorted(PROVIDERS))})")
    parser.add_argument("--click-events", action="store_true", default=None, help="Ask the bar for click events")
    parser.add_argument("--pretty-header", action="store_true", default=None, help="Indent the header object")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", help="Log file path (empty for stderr)")
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> Config:
    """Defaults, then environment, then command line flags."""
    args = build_parser().parse_args(argv)
    config = Config.from_env()
    if args.interval is not None:
        config.interval = args.interval
    if args.blocks is not None:
        config.blocks = parse_block_list(args.blocks)
    if args.click_events is not None:
        config.click_events = args.click_events
    if args.pretty_header is not None:
        config.stream.pretty_header = args.pretty_header
    if args.log_level is not None:
        config.logging.level = args.log_level.upper()
    if args.log_file is not None:
        config.logging.file = args.log_file or None
    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the status generator."""
    try:
        config = load_config(argv)
        providers = resolve_providers(config.blocks)
    except ConfigurationError as e:
        print(f"i3barjson: {e.message}", file=sys.stderr)
        return 2

    setup_logging(config)

    header = Header(
        version=1,
        stop_signal=int(STOP_SIGNAL),
        cont_signal=int(CONT_SIGNAL),
        click_events=config.click_events,
    )
    try:
        publisher = init(header, sys.stdout, sys.stdin if config.click_events else None, config=config.stream)
    except I3barError as e:
        logger.error(f"Failed to open stream: {e}")
        return 1

    generator = StatusGenerator(config, publisher, providers)
    signal.signal(STOP_SIGNAL, lambda signum, frame: generator.pause())
    signal.signal(CONT_SIGNAL, lambda signum, frame: generator.resume())
    signal.signal(signal.SIGTERM, lambda signum, frame: generator.stop())

    try:
        generator.run()
    except I3barError as e:
        logger.error(f"Status stream failed: {e}", exc_info=True)
        return 1
    return 0
