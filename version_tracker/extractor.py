import logging
import re

from version_tracker.constants import OLDEST_TRACKED_BRANCH
from version_tracker.types import InvalidVersionError, SemanticVersion

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(
    r'\s*"\s*(SU_VERS|SU_VERSION)\s*"\s*=\s*"\s*([0-9a-zA-Z\.\s]+?)\s*"\s*;[ \t\r]*$',
    re.MULTILINE | re.DOTALL,
)


class ExtractError(Exception):
    """
    A version field was found but could not be parsed as a version.
    """


class BranchVersionExtractor:
    """
    Pulls the "SU_VERS" = "x.y.z"; declaration out of a distribution document.

    Documents without the declaration (security-only, recovery images) and
    versions older than the oldest tracked branch give None.
    """

    def __init__(
        self, oldest_tracked: SemanticVersion | str = OLDEST_TRACKED_BRANCH
    ):
        if isinstance(oldest_tracked, str):
            oldest_tracked = SemanticVersion.parse(oldest_tracked)
        self.oldest_tracked = oldest_tracked

    def extract(self, body: bytes) -> SemanticVersion | None:
        text = body.decode("utf-8", errors="replace")
        match = VERSION_PATTERN.search(text)
        if match is None:
            return None
        raw_version = match.group(2)
        try:
            version = SemanticVersion.parse(raw_version)
        except InvalidVersionError as e:
            raise ExtractError(f"Unparseable version {raw_version!r}") from e
        if version < self.oldest_tracked:
            logger.debug(
                f"Ignoring version {version}, older than {self.oldest_tracked}"
            )
            return None
        return version
