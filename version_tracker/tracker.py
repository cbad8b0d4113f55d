import enum
import logging
import threading

from version_tracker.config import Config
from version_tracker.constants import OSIdentifier
from version_tracker.fetcher import ConditionalFetcher
from version_tracker.scrapers.base import BaseScraper, CycleOutcome
from version_tracker.scrapers.macos import MacOSScraper
from version_tracker.store import VersionStore
from version_tracker.types import BranchVersions

logger = logging.getLogger(__name__)


class TrackerState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Tracker(threading.Thread):
    """
    Polling loop.

    Runs a scrape cycle as soon as it starts and then once per interval,
    until stop() is called. A cycle in progress is always allowed to finish;
    close() waits for that.
    """

    scraper_classes: list[type[BaseScraper]] = [MacOSScraper]

    def __init__(
        self,
        config: Config,
        store: VersionStore | None = None,
        fetcher: ConditionalFetcher | None = None,
        scrapers: list[BaseScraper] | None = None,
    ):
        self.config = config
        self.store = store or VersionStore()
        self.fetcher = fetcher or ConditionalFetcher(
            timeout=config.request_timeout, user_agent=config.user_agent
        )
        if scrapers is None:
            scrapers = [
                scraper_class.from_config(config, self.store, self.fetcher)
                for scraper_class in self.scraper_classes
            ]
        self.scrapers = scrapers
        self.state = TrackerState.CREATED
        self.stopping = threading.Event()
        self.state_lock = threading.Lock()
        super().__init__(name="version-tracker", daemon=True)

    def start(self):
        with self.state_lock:
            if self.state != TrackerState.CREATED:
                raise RuntimeError(
                    f"Cannot start a tracker that is {self.state.value}"
                )
            self.state = TrackerState.RUNNING
        super().start()

    def run(self):
        logger.info(f"Tracker running, scraping every {self.config.interval}s")
        try:
            while not self.stopping.is_set():
                logger.debug("Scraping...")
                self.scrape()
                logger.debug("Finished scraping.")
                self.stopping.wait(self.config.interval)
        finally:
            with self.state_lock:
                self.state = TrackerState.STOPPED
            logger.info("Shutting down tracker.")

    def scrape(self) -> dict[OSIdentifier, dict[str, CycleOutcome]]:
        """
        Runs one cycle of every scraper, in turn.
        """
        results = {}
        for scraper in self.scrapers:
            try:
                results[scraper.os_identifier] = scraper.scrape()
            except Exception as e:
                logger.exception(f"{scraper}: scrape failed: {e}")
        return results

    def stop(self):
        """
        Stops scheduling new cycles. Does not wait.
        """
        with self.state_lock:
            if self.state == TrackerState.CREATED:
                self.state = TrackerState.STOPPED
            elif self.state == TrackerState.RUNNING:
                self.state = TrackerState.STOPPING
        self.stopping.set()

    def close(self):
        """
        Stops the loop and blocks until it, and any cycle it was running,
        has fully exited.
        """
        self.stop()
        if self.ident is not None:
            self.join()
        self.fetcher.close()

    def read(self, os_identifier: OSIdentifier | str) -> BranchVersions | None:
        return self.store.read(os_identifier)
