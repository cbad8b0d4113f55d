import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from version_tracker.constants import OSIdentifier
from version_tracker.types import BranchVersions, SemanticVersion

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VersionStore:
    """
    In-memory table of the latest known version per release branch, per
    operating system.

    Every known OSIdentifier has an entry from construction onwards; entries
    are only ever updated. A single lock guards the whole table, and both the
    branch version and last_modified are replaced inside it so readers never
    see one without the other. No network I/O happens under the lock.
    """

    def __init__(
        self,
        os_identifiers: Iterable[OSIdentifier] = OSIdentifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.clock = clock
        self.lock = threading.Lock()
        self.entries: dict[OSIdentifier, BranchVersions] = {
            os_identifier: BranchVersions() for os_identifier in os_identifiers
        }

    @staticmethod
    def _coerce(os_identifier: OSIdentifier | str) -> OSIdentifier | None:
        if isinstance(os_identifier, OSIdentifier):
            return os_identifier
        try:
            return OSIdentifier(os_identifier)
        except ValueError:
            return None

    def read(self, os_identifier: OSIdentifier | str) -> BranchVersions | None:
        """
        Returns a snapshot of the entry, or None for an unknown identifier.
        """
        key = self._coerce(os_identifier)
        with self.lock:
            entry = self.entries.get(key) if key is not None else None
            if entry is None:
                return None
            return BranchVersions(
                latest=dict(entry.latest), last_modified=entry.last_modified
            )

    def last_modified(self, os_identifier: OSIdentifier | str) -> datetime | None:
        entry = self.read(os_identifier)
        return entry.last_modified if entry is not None else None

    def merge(
        self,
        os_identifier: OSIdentifier | str,
        branch: str,
        candidate: SemanticVersion,
    ) -> bool:
        """
        Stores candidate for branch if it is strictly greater than what is
        stored (an absent branch counts as the minimum). Returns whether
        anything changed.
        """
        key = self._coerce(os_identifier)
        if key is None or key not in self.entries:
            raise KeyError(f"Unknown operating system {os_identifier!r}")
        with self.lock:
            entry = self.entries[key]
            current = entry.latest.get(branch)
            if current is not None and candidate <= current:
                return False
            now = self.clock()
            if entry.last_modified is not None and now < entry.last_modified:
                now = entry.last_modified
            self.entries[key] = BranchVersions(
                latest={**entry.latest, branch: candidate}, last_modified=now
            )
        logger.debug(f"{key.value} {branch}: {current} -> {candidate}")
        return True
