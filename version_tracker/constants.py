import enum


class OSIdentifier(enum.Enum):
    MACOS = "macOS"
    WINDOWS = "windows"  # Reserved, no scraper yet
    LINUX = "linux"  # Reserved, no scraper yet


CATALOG_BASE_URL = "https://swscan.apple.com/content/catalogs/others/"

# Catalog name -> catalog file under CATALOG_BASE_URL
MAC_CATALOGS = {
    "10.13": "index-10.13-10.12-10.11-10.10-10.9-mountainlion-lion-snowleopard-leopard.merged-1.sucatalog",
}

# Opaque product key -> release branch
MAC_PRODUCT_BRANCHES = {
    "031-30888": "Yosemite",  # 10.10
    "031-63178": "ElCapitan",  # 10.11
    "091-22860": "Sierra",  # 10.12
    "091-39211": "HighSierra",  # 10.13
}

OLDEST_TRACKED_BRANCH = "10.11"

DEFAULT_INTERVAL = 300
DEFAULT_REQUEST_TIMEOUT = 30.0

HTTP_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
HTTP_MONTHS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
