import plistlib
import threading
from datetime import datetime, timedelta, timezone

import pytest

from version_tracker.fetcher import FetchError, NotModified, Updated
from version_tracker.store import VersionStore

CATALOG_URL = "https://catalog.test/index.sucatalog"


def make_catalog(products: dict, fmt=plistlib.FMT_XML) -> bytes:
    """
    Builds a catalog plist with the given product entries.
    """
    return plistlib.dumps({"CatalogVersion": 2, "Products": products}, fmt=fmt)


def make_product(distribution_url: str | None) -> dict:
    product = {"PostDate": datetime(2018, 7, 9), "Packages": []}
    if distribution_url is not None:
        product["Distributions"] = {
            "English": distribution_url,
            "fr": distribution_url.replace("English", "fr"),
        }
    return product


def make_distribution(version: str, key: str = "SU_VERS") -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<installer-gui-script minSpecVersion=\"1\">\n"
        '<localization><strings language="English"><![CDATA["SU_TITLE" = '
        '"macOS Update";\n'
        f'"{key}" = "{version}";\n'
        '"SU_SERVERCOMMENT" = "";\n'
        "]]></strings></localization>\n"
        "</installer-gui-script>\n"
    ).encode("utf-8")


class FakeFetcher:
    """
    Stands in for ConditionalFetcher. Responses are keyed by URL; values are
    bytes (200), an int (other status) or an exception to raise.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, datetime | None]] = []
        self.lock = threading.Lock()
        self.closed = False

    def fetch(self, url, if_modified_since):
        with self.lock:
            self.calls.append((url, if_modified_since))
        response = self.responses.get(url, 404)
        if isinstance(response, BaseException):
            raise FetchError(url, response)
        if isinstance(response, int):
            return NotModified(response)
        return Updated(response)

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    def close(self):
        self.closed = True


class FakeClock:
    """
    Returns a new time, one second later, on each call.
    """

    def __init__(self, start=datetime(2018, 7, 9, 17, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return VersionStore(clock=clock)


@pytest.fixture
def fetcher():
    return FakeFetcher()
