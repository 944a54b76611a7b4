import os
import warnings
from collections.abc import Callable
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from packaging.version import InvalidVersion, Version

from driver_versions import (
    InvalidVersionError,
    Platform,
    detect_platform,
    filter_catalog,
    find_best_match,
    is_valid_semver,
    normalize_version,
)
from utils import load_env_file

__all__ = [
    "ChromeDriverResolver",
    "InvalidVersionError",
    "MatchResult",
    "ResolverConfig",
    "exceeds_max_version",
    "fetch_catalog_keys",
    "fetch_latest_version",
    "parse_catalog_keys",
]

DEFAULT_CDN_URL = "https://chromedriver.storage.googleapis.com/"
# Last release published on the legacy chromedriver bucket
DEFAULT_MAX_VERSION = "114.0.5735.90"
DEFAULT_TIMEOUT = 30.0
LATEST = "latest"


@dataclass(frozen=True)
class ResolverConfig:
    base_url: str = DEFAULT_CDN_URL
    latest_release_url: str = DEFAULT_CDN_URL + "LATEST_RELEASE"
    max_version: str = DEFAULT_MAX_VERSION
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env_file: str = ".env") -> "ResolverConfig":
        """Build a config from ``CHROMEDRIVER_*`` variables.

        *env_file* is loaded first; variables already set in the environment
        take precedence over it.
        """
        load_env_file(env_file)
        base_url = os.getenv("CHROMEDRIVER_CDN_URL") or DEFAULT_CDN_URL
        if not base_url.endswith("/"):
            base_url += "/"
        latest_url = os.getenv("CHROMEDRIVER_LATEST_URL") or base_url + "LATEST_RELEASE"
        max_version = os.getenv("CHROMEDRIVER_MAX_VERSION") or DEFAULT_MAX_VERSION
        raw_timeout = os.getenv("CHROMEDRIVER_HTTP_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(
                f"CHROMEDRIVER_HTTP_TIMEOUT must be a number, got {raw_timeout!r}"
            ) from None
        return cls(base_url, latest_url, max_version, timeout)


@dataclass(frozen=True)
class MatchResult:
    download_path: str
    requested_version: str

    @property
    def found(self) -> bool:
        return bool(self.download_path)


def parse_catalog_keys(xml_text: str) -> list[str]:
    """Return the ``<Key>`` values of a bucket listing, in document order."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        soup = BeautifulSoup(xml_text, "html.parser")
    keys = []
    # html.parser lowercases tag names
    for tag in soup.find_all("key"):
        key = tag.get_text(strip=True)
        if key:
            keys.append(key)
    return keys


def fetch_catalog_keys(config: ResolverConfig) -> list[str]:
    response = requests.get(config.base_url, timeout=config.timeout)
    response.raise_for_status()
    return parse_catalog_keys(response.text)


def fetch_latest_version(config: ResolverConfig) -> str:
    response = requests.get(config.latest_release_url, timeout=config.timeout)
    response.raise_for_status()
    return response.text.strip()


def exceeds_max_version(version: str, config: ResolverConfig) -> bool:
    """Return True when *version* is newer than ``config.max_version``.

    Versions that cannot be compared are never reported as exceeding.
    """
    try:
        return Version(version) > Version(config.max_version)
    except InvalidVersion:
        return False


class ChromeDriverResolver:
    """Resolve a requested chromedriver version to a download URL.

    The catalog and latest-release lookups are injected so the resolver can be
    driven without network access. No state is kept between calls.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        platform: Platform | None = None,
        fetch_catalog: Callable[[], list[str]] | None = None,
        fetch_latest: Callable[[], str] | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.platform = platform or detect_platform()
        self._fetch_catalog = fetch_catalog or (lambda: fetch_catalog_keys(self.config))
        self._fetch_latest = fetch_latest or (lambda: fetch_latest_version(self.config))

    def version_list(self) -> list[str]:
        """Catalog keys usable on this platform, in catalog order."""
        return filter_catalog(self._fetch_catalog(), self.platform)

    def list_versions(self) -> list[str]:
        """Distinct normalized versions available here, newest first."""
        versions = set()
        for key in self.version_list():
            folder = key.split("/")[0]
            if is_valid_semver(folder):
                continue
            version = normalize_version(folder)
            if is_valid_semver(version):
                versions.add(version)
        return sorted(versions, key=Version, reverse=True)

    def resolve(self, requested_version: str) -> MatchResult:
        if requested_version == LATEST:
            return self.resolve(self._fetch_latest())

        entries = self.version_list()
        best = find_best_match(entries, requested_version, self.platform)
        if not best:
            return MatchResult("", requested_version)
        return MatchResult(self.config.base_url + best, requested_version)
