"""Entry point for the log collector."""

from typing import Optional, TextIO
import os
import sys
import logging
from udplogger.clients import LokiClient
from udplogger.collector import Collector, DEFAULT_STORE_PATH
from udplogger.forwarder import StoreForwarder
from udplogger.protocol import DEFAULT_POLL_INTERVAL, SERVER_PORT, SeverityLevel
from udplogger.store import DirectoryError, ensure_dir
from udplogger.transport import TransportError

# Configuration Constants
DEFAULT_DATA_DIR = "data"
DEFAULT_LOG_LEVEL = "DEBUG"

MENU = """
Commands:
  level <0-3>  Set the log level (0=DEBUG, 1=WARNING, 2=ERROR, 3=CRITICAL)
  dump         Dump the log file here
  quit         Shut down"""


class ConfigurationError(Exception):
    """Custom exception for configuration-related errors."""

    pass


def _env_number(name: str, default, cast):
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}")


class ConfigManager:
    """Reads collector settings from the environment."""

    def __init__(self):
        self.data_dir = os.environ.get("DATA_DIR", DEFAULT_DATA_DIR)
        store_path = os.environ.get("STORE_PATH", DEFAULT_STORE_PATH)
        self.store_path = os.path.join(self.data_dir, store_path)
        self.offset_dir = os.path.join(self.data_dir, "pygtail")
        self.host = os.environ.get("SERVER_HOST", "")
        self.port = _env_number("SERVER_PORT", SERVER_PORT, int)
        self.poll_interval = _env_number("POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float)
        self.loki_url = os.environ.get("LOKI_URL") or None
        self.logger = logging.getLogger("udplogger")

    def setup_logging(self, log_level: str = DEFAULT_LOG_LEVEL) -> None:
        """Configure application logging with file and console handlers."""
        numeric_level = getattr(logging, log_level.upper(), logging.INFO)
        log_file = os.path.join(self.data_dir, "collector.log")
        handlers = [logging.StreamHandler()]

        try:
            ensure_dir(self.data_dir)
            handlers.append(logging.FileHandler(log_file))
        except (DirectoryError, OSError) as e:
            self.logger.warning(f"Failed to setup file logging: {e}")

        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=handlers,
        )

    def create_collector(self) -> Collector:
        return Collector(
            store_path=self.store_path,
            bind_host=self.host,
            port=self.port,
            poll_interval=self.poll_interval,
        )

    def create_forwarder(self, collector: Collector) -> Optional[StoreForwarder]:
        if not self.loki_url:
            return None
        return StoreForwarder(
            collector.store, LokiClient(self.loki_url), offset_dir=self.offset_dir
        )


def handle_command(
    collector: Collector, command: str, out: TextIO = sys.stdout
) -> bool:
    """Run one operator command; returns False when the console should exit."""
    parts = command.split()
    if not parts:
        return True

    if parts[0] == "level":
        try:
            level = int(parts[1])
        except (IndexError, ValueError):
            print("Usage: level <0-3>", file=out)
            return True
        if not SeverityLevel.DEBUG <= level <= SeverityLevel.CRITICAL:
            print("Invalid level", file=out)
        elif collector.push_level(level):
            print(f"Sent log level {level} to client", file=out)
        else:
            print("No client receive port known yet. Waiting for hello message.", file=out)
    elif parts[0] == "dump":
        for line in collector.dump():
            print(line, file=out)
    elif parts[0] in ("quit", "exit"):
        return False
    else:
        print("Invalid choice", file=out)
    return True


def main() -> None:
    """Main entry point for the application."""
    try:
        config_manager = ConfigManager()
    except ConfigurationError as e:
        logging.basicConfig()
        logging.getLogger("udplogger").error(f"Configuration error: {e}")
        sys.exit(1)

    config_manager.setup_logging(os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL))
    logger = logging.getLogger("udplogger")

    collector = config_manager.create_collector()
    try:
        if not collector.start():
            sys.exit(1)
    except TransportError as e:
        logger.error(f"Failed to start collector: {e}")
        sys.exit(1)

    forwarder = config_manager.create_forwarder(collector)
    if forwarder:
        forwarder.start()

    try:
        print(MENU)
        for command in sys.stdin:
            if not handle_command(collector, command):
                break
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down collector...")
        if forwarder:
            forwarder.stop()
        collector.stop()
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
