import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import requests

from version_tracker import __version__
from version_tracker.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    HTTP_MONTHS,
    HTTP_WEEKDAYS,
)

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """
    Transport-level failure (DNS, connection, timeout) while fetching a URL.
    """

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"Error fetching {url}: {cause}")


@dataclass(frozen=True)
class Updated:
    body: bytes


@dataclass(frozen=True)
class NotModified:
    status_code: int


FetchResult = Updated | NotModified


def http_date(moment: datetime) -> str:
    """
    Formats a timestamp as "Mon, 2 Jan 2006 15:04:05 GMT".
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return (
        f"{HTTP_WEEKDAYS[moment.weekday()]}, {moment.day} "
        f"{HTTP_MONTHS[moment.month - 1]} {moment.year:04d} "
        f"{moment:%H:%M:%S} GMT"
    )


class ConditionalFetcher:
    """
    Performs GETs that only return content if it changed since a timestamp.

    Only a 200 counts as new content; any other status (usually 304) is
    reported as NotModified. Retries are left to the next scheduled cycle.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.user_agent = user_agent or f"version-tracker/{__version__}"

    def fetch(self, url: str, if_modified_since: datetime | None) -> FetchResult:
        headers = {"User-Agent": self.user_agent}
        if if_modified_since is not None:
            headers["If-Modified-Since"] = http_date(if_modified_since)
        try:
            with self.session.get(
                url, headers=headers, timeout=self.timeout, stream=True
            ) as response:
                if response.status_code != 200:
                    logger.debug(
                        f"{url} not modified since "
                        f"{headers.get('If-Modified-Since')} "
                        f"(status {response.status_code})"
                    )
                    return NotModified(response.status_code)
                return Updated(response.content)
        except requests.RequestException as e:
            raise FetchError(url, e) from e

    def close(self):
        self.session.close()
