import platform as _platform
import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce


class InvalidVersionError(ValueError):
    """Raised when a requested version cannot be turned into a semver."""


@dataclass(frozen=True)
class Platform:
    os_type: str  # "mac", "windows" or "linux"
    arch: str  # "x64", "arm64", "ia32", ...
    is_apple_silicon: bool = False


# Chromedriver folders are either "2.46" or "75.0.3770.8"
LEGACY_VERSION_RE = re.compile(r"(\d+\.\d+)")
MODERN_VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)\.\d+")

_IDENT = r"[0-9A-Za-z-]+"
SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    rf"(?:-{_IDENT}(?:\.{_IDENT})*)?"
    rf"(?:\+{_IDENT}(?:\.{_IDENT})*)?$"
)

APPLE_SILICON_MARKER = "m1"


def detect_platform() -> Platform:
    """Return the :class:`Platform` of the running interpreter.

    ``platform.machine()`` values are mapped onto the arch names used by the
    chromedriver catalog rules: ``x64`` for x86_64/amd64, ``arm64`` for
    arm64/aarch64 and ``ia32`` for 32-bit x86. Anything else is passed through
    lowercased.
    """
    system = _platform.system()
    machine = _platform.machine().lower()
    if system == "Darwin":
        os_type = "mac"
    elif system == "Windows":
        os_type = "windows"
    else:
        os_type = "linux"

    if machine in ("x86_64", "amd64"):
        arch = "x64"
    elif machine in ("arm64", "aarch64"):
        arch = "arm64"
    elif machine in ("i386", "i686", "x86"):
        arch = "ia32"
    else:
        arch = machine
    return Platform(os_type, arch, os_type == "mac" and arch == "arm64")


def normalize_version(raw) -> str:
    """Turn a chromedriver version string into a 3-component semver.

    Chromedriver does not follow semantic versioning: old releases have two
    fields and new ones have four. Two-field versions get a ``.0`` appended,
    four-field versions lose their last field::

        2.46        -> 2.46.0
        75.0.3770.8 -> 75.0.3770

    Returns ``""`` when neither form is found.
    """
    if not isinstance(raw, str):
        return ""
    normalized = ""
    legacy = LEGACY_VERSION_RE.search(raw)
    if legacy:
        normalized = legacy.group(1) + ".0"
    modern = MODERN_VERSION_RE.search(raw)
    if modern:
        normalized = modern.group(1)
    return normalized


def is_valid_semver(value) -> bool:
    if not isinstance(value, str):
        return False
    return SEMVER_RE.match(value.strip()) is not None


def os_type_name(platform: Platform) -> str:
    """Return the OS token used in catalog file names."""
    if platform.os_type == "mac":
        return "mac"
    if platform.os_type == "windows":
        return "win"
    return "linux"


def matches_os_name(entry_key: str, platform: Platform) -> bool:
    return os_type_name(platform) in entry_key


def is_eligible(entry_key: str, platform: Platform) -> bool:
    # 32-bit machines never get a 64 build
    if "64" not in platform.arch and "64" in entry_key:
        return False
    # Intel macs (and everything else) never get an m1 build
    if not platform.is_apple_silicon and APPLE_SILICON_MARKER in entry_key:
        return False
    return matches_os_name(entry_key, platform)


def filter_catalog(entry_keys: Iterable[str], platform: Platform) -> list[str]:
    """Return the catalog keys usable on *platform*, in catalog order."""
    return [key for key in entry_keys if is_eligible(key, platform)]


def _version_folder(entry_key: str) -> str:
    return entry_key.split("/")[0]


def _trailing_number(entry_key: str) -> int | None:
    try:
        return int(_version_folder(entry_key).split(".")[-1])
    except ValueError:
        return None


def candidate_entries(entry_keys: Iterable[str], target: str) -> Iterable[str]:
    """Yield the keys whose version folder normalizes to *target*.

    Folders that are already plain semvers are not chromedriver release
    folders and are skipped.
    """
    for key in entry_keys:
        folder = _version_folder(key)
        if is_valid_semver(folder):
            continue
        version = normalize_version(folder)
        if not is_valid_semver(version):
            continue
        if version == target:
            yield key


def pick_entry(best: str, candidate: str, platform: Platform) -> str:
    """Return whichever of *best* and *candidate* should be kept.

    *best* is ``""`` until a first entry has been accepted. Both keys are
    assumed to carry the same normalized version.
    """
    os_name = os_type_name(platform)
    if not best:
        chosen = ""
        if platform.arch == "x64" or f"{os_name}64" not in candidate:
            chosen = candidate
        if (
            platform.arch == "arm64"
            and platform.os_type == "mac"
            and APPLE_SILICON_MARKER in candidate
        ):
            chosen = candidate
        return chosen

    if platform.arch != "x64":
        return best

    # There is no win64 chromedriver, x64 windows uses win32
    preferred = os_name + ("32" if os_name == "win" else "64")
    if preferred not in candidate:
        return best

    best_fields = _version_folder(best).split(".")
    candidate_fields = _version_folder(candidate).split(".")
    if len(best_fields) != len(candidate_fields):
        return candidate

    # 50.10.100 beats 50.10.20 even though "20" > "100" as strings
    best_number = _trailing_number(best)
    candidate_number = _trailing_number(candidate)
    if best_number is None or candidate_number is None:
        return best
    return candidate if candidate_number > best_number else best


def find_best_match(
    filtered_entries: Iterable[str], requested_version: str, platform: Platform
) -> str:
    """Return the catalog key that best serves *requested_version*.

    Raises :class:`InvalidVersionError` when the request does not normalize.
    Returns ``""`` when nothing in *filtered_entries* matches.
    """
    target = normalize_version(requested_version)
    if not target:
        raise InvalidVersionError(
            f"version {requested_version!r} ChromeDriver does not exist"
        )
    return reduce(
        lambda best, candidate: pick_entry(best, candidate, platform),
        candidate_entries(filtered_entries, target),
        "",
    )
