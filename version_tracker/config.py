from pathlib import Path
from typing import Annotated, Any
from urllib.parse import urljoin

import yaml
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    PositiveFloat,
    PositiveInt,
)

from version_tracker.constants import (
    CATALOG_BASE_URL,
    DEFAULT_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    MAC_CATALOGS,
    MAC_PRODUCT_BRANCHES,
    OLDEST_TRACKED_BRANCH,
)
from version_tracker.types import SemanticVersion


def _reject_float(value: Any) -> Any:
    if isinstance(value, float):
        raise ValueError(
            f"{value!r} was read as a number; quote it, e.g. '10.10', so trailing "
            "zeros are kept"
        )
    if isinstance(value, int):
        return str(value)
    return value


def _check_version(value: str) -> str:
    SemanticVersion.parse(value)
    return value


def _ensure_trailing_slash(value: str) -> str:
    return value if value.endswith("/") else value + "/"


class ConfigSchema(BaseModel):

    interval: PositiveInt = DEFAULT_INTERVAL
    request_timeout: PositiveFloat = DEFAULT_REQUEST_TIMEOUT
    user_agent: str | None = None
    catalog_base_url: Annotated[str, AfterValidator(_ensure_trailing_slash)] = (
        CATALOG_BASE_URL
    )
    catalogs: dict[str, str] = MAC_CATALOGS
    branches: dict[str, str] = MAC_PRODUCT_BRANCHES
    # YAML reads an unquoted 10.10 as the float 10.1
    oldest_tracked_branch: Annotated[
        str, BeforeValidator(_reject_float), AfterValidator(_check_version)
    ] = OLDEST_TRACKED_BRANCH


class Config:
    """
    Config file parser.

    The file is optional; anything it doesn't set falls back to the defaults
    for Apple's public catalog. Keyword overrides (from the command line) win
    over the file, and None overrides are ignored.
    """

    def __init__(self, config_path: Path | None = None, **overrides: Any):
        self.config_path = config_path
        data: dict[str, Any] = {}
        if config_path is not None:
            with open(config_path) as fh:
                data = yaml.safe_load(fh.read()) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {config_path} is not a mapping")
        data.update(
            {key: value for key, value in overrides.items() if value is not None}
        )
        self.config_data = ConfigSchema(**data)

        self.interval = self.config_data.interval
        self.request_timeout = self.config_data.request_timeout
        self.user_agent = self.config_data.user_agent
        self.branches = dict(self.config_data.branches)
        self.oldest_tracked_branch = SemanticVersion.parse(
            self.config_data.oldest_tracked_branch
        )

    def catalog_urls(self) -> dict[str, str]:
        """
        Returns catalog name -> full catalog URL
        """
        return {
            name: urljoin(self.config_data.catalog_base_url, filename)
            for name, filename in self.config_data.catalogs.items()
        }
