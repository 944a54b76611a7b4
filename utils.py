import glob
import os
import stat
from pathlib import Path


def load_env_file(path: str = ".env") -> list[str]:
    """Load ``KEY=VALUE`` pairs from *path* into ``os.environ``.

    Variables already present in the environment are left untouched. Blank
    lines, ``#`` comments and lines without ``=`` are ignored, and values may
    be wrapped in single or double quotes. Returns the keys that were set.
    """
    if not os.path.isfile(path):
        return []
    loaded = []
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip()
            if len(val) >= 2 and val[0] == val[-1] and val[0] in "\"'":
                val = val[1:-1]
            if key and key not in os.environ:
                os.environ[key] = val
                loaded.append(key)
    return loaded


def driver_binary_name(os_type: str) -> str:
    return "chromedriver.exe" if os_type == "windows" else "chromedriver"


def find_driver_binary(dest: Path, os_type: str) -> Path | None:
    """Return the chromedriver executable extracted under *dest*.

    Zips from the legacy bucket put the binary at the archive root, newer ones
    nest it in a ``chromedriver-<platform>`` folder, so the whole tree is
    searched. The shallowest match wins.
    """
    name = driver_binary_name(os_type)
    matches = [
        Path(p)
        for p in glob.glob(str(dest / "**" / name), recursive=True)
        if os.path.isfile(p)
    ]
    if not matches:
        return None
    return min(matches, key=lambda p: len(p.parts)).resolve()


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
