import logging
import signal
import time
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from version_tracker.config import Config
from version_tracker.constants import OSIdentifier
from version_tracker.scrapers.base import CycleOutcome
from version_tracker.tracker import Tracker

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """
    Abbreviates level names and colours whole lines by level.

    Works on a copy of the record; handlers sharing the record (file logs,
    test capture) still see the plain message and level name.
    """

    COLORS = {
        logging.DEBUG: "\033[90m",  # Grey
        logging.INFO: "\033[37m",  # White
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[31m",  # Red
    }
    RESET = "\033[0m"

    ABBREVIATIONS = {
        "DEBUG": "DBG",
        "INFO": "INF",
        "WARNING": "WRN",
        "ERROR": "ERR",
        "CRITICAL": "CRT",
    }

    def __init__(self, fmt=None, datefmt=None, color: bool = True):
        super().__init__(fmt, datefmt)
        self.color = color

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = self.ABBREVIATIONS.get(
            record.levelname, record.levelname[:3]
        )
        line = super().format(record)
        if not self.color:
            return line
        return f"{self.COLORS.get(record.levelno, self.RESET)}{line}{self.RESET}"


def _interrupt(signum, frame):
    raise KeyboardInterrupt()


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default="INFO",
)
@click.option("--debug", is_flag=True, help="Enables debug-level logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file",
)
@click.pass_context
def main(ctx, log_level: str, debug: bool, config_path: Path | None):
    """
    Tracks the latest released macOS version per release branch.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        ColoredFormatter(
            "%(asctime)s | %(levelname)s | %(threadName)s | %(message)s",
            datefmt="%H:%M:%S",
            color=handler.stream.isatty(),
        )
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, log_level.upper()),
        handlers=[handler],
    )
    ctx.obj = {"config_path": config_path}


@main.command()
@click.option(
    "--interval",
    type=click.IntRange(min=1),
    default=None,
    help="How often (in seconds) to check if a new patch is out (defaults to 300)",
)
@click.pass_obj
def run(obj, interval: int | None):
    """
    Run the tracker until interrupted
    """
    config = Config(obj["config_path"], interval=interval)
    tracker = Tracker(config)
    signal.signal(signal.SIGTERM, _interrupt)
    tracker.start()
    logger.info("Running. Ctrl-C to exit.")
    try:
        while tracker.is_alive():
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    logger.info("Stopping, waiting for in-flight scrapes to finish")
    tracker.close()


@main.command()
@click.pass_obj
def check(obj):
    """
    One-shot scrape for debugging
    """
    config = Config(obj["config_path"])
    tracker = Tracker(config)
    try:
        results = tracker.scrape()
    finally:
        tracker.close()

    console = Console()
    for os_identifier, outcomes in results.items():
        for name, outcome in outcomes.items():
            style = "red" if outcome == CycleOutcome.FAILED else "green"
            console.print(
                f"{os_identifier.value} catalog {name}: "
                f"[{style}]{outcome.value}[/{style}]"
            )

    table = Table()
    table.add_column("OS", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Latest", justify="right", style="magenta")
    table.add_column("Modified", style="yellow")
    for os_identifier in OSIdentifier:
        versions = tracker.read(os_identifier)
        if versions is None or not versions.latest:
            table.add_row(os_identifier.value, "[dim]None[/dim]", "", "")
            continue
        modified = versions.last_modified.strftime("%Y-%m-%d %H:%M:%S")
        for branch, version in sorted(
            versions.latest.items(), key=lambda item: item[1], reverse=True
        ):
            table.add_row(os_identifier.value, branch, str(version), modified)
    console.print(table)

    if any(
        outcome == CycleOutcome.FAILED
        for outcomes in results.values()
        for outcome in outcomes.values()
    ):
        raise SystemExit(1)


@main.command()
@click.pass_obj
def catalogs(obj):
    """
    List configured catalogs and tracked branches
    """
    config = Config(obj["config_path"])
    console = Console()

    table = Table()
    table.add_column("Catalog", style="cyan")
    table.add_column("URL", style="green")
    for name, url in config.catalog_urls().items():
        table.add_row(name, url)
    console.print(table)

    table = Table()
    table.add_column("Product", style="cyan")
    table.add_column("Branch", style="green")
    for key, branch in config.branches.items():
        table.add_row(key, branch)
    console.print(table)
    console.print(f"Oldest tracked branch: {config.oldest_tracked_branch}")


if __name__ == "__main__":
    main()
