from dataclasses import dataclass, field
from datetime import datetime

from packaging.version import InvalidVersion, Version


class InvalidVersionError(ValueError):
    """
    Raised when a string cannot be read as a major.minor.patch version.
    """


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """
    A (major, minor, patch) triple, ordered numerically per component.
    """

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parses "10.13.6" style strings. Missing minor/patch components are
        treated as zero; anything beyond a plain release (pre-release tags,
        more than three components, letters) is rejected.
        """
        text = text.strip()
        try:
            parsed = Version(text)
        except InvalidVersion as e:
            raise InvalidVersionError(f"Invalid version {text!r}") from e
        if (
            parsed.is_prerelease
            or parsed.is_postrelease
            or parsed.is_devrelease
            or parsed.local
            or parsed.epoch
            or len(parsed.release) > 3
        ):
            raise InvalidVersionError(f"Invalid version {text!r}")
        release = parsed.release + (0,) * (3 - len(parsed.release))
        return cls(*release)

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class BranchVersions:
    """
    Snapshot of the tracked versions for one operating system.

    last_modified is None until the first successful update.
    """

    latest: dict[str, SemanticVersion] = field(default_factory=dict)
    last_modified: datetime | None = None
