import logging
import plistlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from xml.parsers.expat import ExpatError

from version_tracker.constants import MAC_PRODUCT_BRANCHES

logger = logging.getLogger(__name__)


class CatalogParseError(Exception):
    """
    The catalog document could not be decoded at all.
    """


@dataclass(frozen=True)
class Product:
    key: str
    english_distribution: str | None = None


@dataclass(frozen=True)
class BranchEntry:
    branch: str
    distribution_url: str


@dataclass(frozen=True)
class CatalogDocument:
    """
    The parts of a software update catalog we care about: the products whose
    keys map to a tracked branch, each with its English distribution URL.
    """

    products: dict[str, Product] = field(default_factory=dict)
    branch_map: Mapping[str, str] = field(default_factory=dict)

    def branches(self) -> list[BranchEntry]:
        """
        Returns one entry per tracked branch that has a distribution URL.
        """
        entries = []
        for key, branch in self.branch_map.items():
            product = self.products.get(key)
            if product is None or not product.english_distribution:
                continue
            entries.append(BranchEntry(branch, product.english_distribution))
        return entries


class CatalogParser:
    """
    Decodes a property-list catalog into a CatalogDocument.

    Only the product keys in branch_map are decoded. A top level that isn't a
    dictionary is an error; individual products that are missing or shaped
    wrong are skipped.
    """

    def __init__(self, branch_map: Mapping[str, str] = MAC_PRODUCT_BRANCHES):
        self.branch_map = dict(branch_map)

    def parse(self, body: bytes) -> CatalogDocument:
        try:
            data = plistlib.loads(body)
        except (
            plistlib.InvalidFileException,
            ExpatError,
            ValueError,
            AttributeError,
            TypeError,
        ) as e:
            raise CatalogParseError(f"Cannot decode catalog: {e}") from e
        if not isinstance(data, dict):
            raise CatalogParseError(
                f"Catalog top level is {type(data).__name__}, not a dictionary"
            )
        raw_products = data.get("Products")
        if not isinstance(raw_products, dict):
            logger.warning("Catalog has no Products dictionary")
            return CatalogDocument(branch_map=self.branch_map)
        products = {}
        for key in self.branch_map:
            product = self._parse_product(key, raw_products.get(key))
            if product is not None:
                products[key] = product
        return CatalogDocument(products=products, branch_map=self.branch_map)

    def _parse_product(self, key: str, raw: Any) -> Product | None:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            logger.debug(f"Skipping product {key}: not a dictionary")
            return None
        distributions = raw.get("Distributions")
        if not isinstance(distributions, dict):
            return Product(key)
        english = distributions.get("English")
        if not isinstance(english, str):
            english = None
        return Product(key, english)
