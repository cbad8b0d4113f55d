import enum
from typing import ClassVar

from version_tracker.constants import OSIdentifier
from version_tracker.fetcher import ConditionalFetcher
from version_tracker.store import VersionStore


class CycleOutcome(enum.Enum):
    UPDATED = "updated"
    NO_UPDATE = "no-update"
    FAILED = "failed"


class BaseScraper:
    """
    Base class for all scrapers.

    A scraper runs one cycle at a time against the sources for a single
    operating system, and merges what it finds into the shared store.
    """

    os_identifier: ClassVar[OSIdentifier]

    def __init__(self, store: VersionStore, fetcher: ConditionalFetcher):
        self.store = store
        self.fetcher = fetcher

    def __str__(self):
        return f"{self.__class__.__name__} ({self.os_identifier.value})"

    @classmethod
    def from_config(cls, config, store: VersionStore, fetcher: ConditionalFetcher):
        raise NotImplementedError()

    def scrape(self) -> dict[str, CycleOutcome]:
        """
        Runs one full cycle and blocks until all of its work has finished.
        Returns an outcome per source (for example, per catalog).
        """
        raise NotImplementedError()
