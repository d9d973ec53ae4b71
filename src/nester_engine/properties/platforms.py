"""Listing platform detection for scrape requests."""

import re
from urllib.parse import urlparse

URL_PATTERN = re.compile(r"^https?://.+")

# Order matters: the first hostname fragment that matches wins.
PLATFORM_HOSTS: list[tuple[str, str]] = [
    ("zillow.com", "zillow"),
    ("realtor.com", "realtor"),
    ("redfin.com", "redfin"),
    ("homes.com", "homes"),
    ("trulia.com", "trulia"),
]

SUPPORTED_PLATFORMS = [platform for _, platform in PLATFORM_HOSTS]

PLATFORM_CAPABILITIES = {
    "zillow": {
        "name": "Zillow",
        "supports": ["basic_info", "images", "description", "features", "neighborhood"],
    },
    "realtor": {
        "name": "Realtor.com",
        "supports": ["basic_info", "images", "description", "features"],
    },
    "redfin": {
        "name": "Redfin",
        "supports": ["basic_info", "images", "description", "features", "neighborhood"],
    },
    "homes": {
        "name": "Homes.com",
        "supports": ["basic_info", "images", "description"],
    },
    "trulia": {
        "name": "Trulia",
        "supports": ["basic_info", "images", "description", "neighborhood"],
    },
}

# Interior styles the image workflow renders for every original photo.
IMAGE_STYLES = ["contemporary", "bohemian", "traditional", "scandinavian"]

UNSUPPORTED_PLATFORM_MESSAGE = (
    "Unsupported platform. Supported platforms: " + ", ".join(SUPPORTED_PLATFORMS)
)


def is_valid_url(url: str) -> bool:
    return bool(URL_PATTERN.match(url))


def detect_platform(url: str) -> str | None:
    """Return the platform identifier for a listing URL, or None.

    Matching is by substring of the lowercased hostname, so subdomains such
    as ``www.`` or ``m.`` are accepted.
    """
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return None
    for fragment, platform in PLATFORM_HOSTS:
        if fragment in hostname:
            return platform
    return None
