import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from version_tracker.catalog import BranchEntry, CatalogParseError, CatalogParser
from version_tracker.config import Config
from version_tracker.constants import MAC_PRODUCT_BRANCHES, OSIdentifier
from version_tracker.extractor import BranchVersionExtractor, ExtractError
from version_tracker.fetcher import ConditionalFetcher, FetchError, NotModified
from version_tracker.store import VersionStore

from .base import BaseScraper, CycleOutcome

logger = logging.getLogger(__name__)


class MacOSScraper(BaseScraper):
    """
    Scrapes Apple software update catalogs for the latest macOS versions.

    Each catalog is fetched conditionally on the store's last_modified. If it
    changed, every tracked branch's English distribution document is fetched
    in parallel and its SU_VERS merged into the store. A failing branch only
    loses its own contribution.
    """

    os_identifier = OSIdentifier.MACOS

    def __init__(
        self,
        store: VersionStore,
        fetcher: ConditionalFetcher,
        catalogs: Mapping[str, str],
        parser: CatalogParser | None = None,
        extractor: BranchVersionExtractor | None = None,
    ):
        super().__init__(store, fetcher)
        self.catalogs = dict(catalogs)
        self.parser = parser or CatalogParser(MAC_PRODUCT_BRANCHES)
        self.extractor = extractor or BranchVersionExtractor()

    @classmethod
    def from_config(
        cls, config: Config, store: VersionStore, fetcher: ConditionalFetcher
    ) -> "MacOSScraper":
        return cls(
            store,
            fetcher,
            catalogs=config.catalog_urls(),
            parser=CatalogParser(config.branches),
            extractor=BranchVersionExtractor(config.oldest_tracked_branch),
        )

    def scrape(self) -> dict[str, CycleOutcome]:
        if not self.catalogs:
            return {}
        with ThreadPoolExecutor(
            max_workers=len(self.catalogs), thread_name_prefix="catalog"
        ) as executor:
            futures = {
                name: executor.submit(self.scrape_catalog, name, url)
                for name, url in self.catalogs.items()
            }
        outcomes = {}
        for name, future in futures.items():
            try:
                outcomes[name] = future.result()
            except Exception as e:
                logger.exception(f"Catalog {name}: unexpected error: {e}")
                outcomes[name] = CycleOutcome.FAILED
        return outcomes

    def scrape_catalog(self, name: str, url: str) -> CycleOutcome:
        """
        Runs one cycle against a single catalog.
        """
        last_modified = self.store.last_modified(self.os_identifier)
        try:
            result = self.fetcher.fetch(url, last_modified)
        except FetchError as e:
            logger.error(f"Catalog {name}: {e}")
            return CycleOutcome.FAILED
        if isinstance(result, NotModified):
            logger.debug(
                f"Catalog {name} has not been updated since we last pulled it; "
                "short-circuiting."
            )
            return CycleOutcome.NO_UPDATE

        try:
            document = self.parser.parse(result.body)
        except CatalogParseError as e:
            logger.error(f"Catalog {name} ({url}): {e}")
            return CycleOutcome.FAILED

        entries = document.branches()
        updated = False
        if entries:
            with ThreadPoolExecutor(
                max_workers=len(entries), thread_name_prefix=f"branch-{name}"
            ) as executor:
                futures = [
                    executor.submit(self.scrape_branch, entry, last_modified)
                    for entry in entries
                ]
            for entry, future in zip(entries, futures):
                try:
                    updated = future.result() or updated
                except Exception as e:
                    logger.exception(f"Branch {entry.branch}: unexpected error: {e}")

        snapshot = self.store.read(self.os_identifier)
        if updated:
            logger.info(
                f"Updated version map from catalog {name}: "
                f"{self._describe(snapshot.latest)} "
                f"(modified at {snapshot.last_modified})"
            )
            return CycleOutcome.UPDATED
        logger.debug(
            f"Did not update version map from catalog {name}: "
            f"{self._describe(snapshot.latest)}"
        )
        return CycleOutcome.NO_UPDATE

    def scrape_branch(
        self, entry: BranchEntry, last_modified: datetime | None
    ) -> bool:
        """
        Fetches one branch's distribution document and merges its version.
        Returns True if the store changed.
        """
        try:
            result = self.fetcher.fetch(entry.distribution_url, last_modified)
        except FetchError as e:
            logger.error(f"Branch {entry.branch}: {e}")
            return False
        if isinstance(result, NotModified):
            logger.debug(
                f"Distribution for {entry.branch} has not been updated since we "
                "last pulled it; short-circuiting."
            )
            return False
        try:
            version = self.extractor.extract(result.body)
        except ExtractError as e:
            logger.warning(f"Branch {entry.branch} ({entry.distribution_url}): {e}")
            return False
        if version is None:
            logger.debug(f"Branch {entry.branch}: no tracked release in distribution")
            return False
        return self.store.merge(self.os_identifier, entry.branch, version)

    @staticmethod
    def _describe(latest: Mapping) -> str:
        if not latest:
            return "{}"
        return ", ".join(
            f"{branch}={version}" for branch, version in sorted(latest.items())
        )
