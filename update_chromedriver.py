#!/usr/bin/env python3
"""
Download the chromedriver build matching this machine.

Usage examples:
  python update_chromedriver.py
  python update_chromedriver.py --version 75.0.3770.8
  python update_chromedriver.py --version 2.46 --dest drivers
  python update_chromedriver.py --list
  python update_chromedriver.py --dry-run
"""

import argparse
import io
import sys
import zipfile
from pathlib import Path

import requests

from driver_catalog import ChromeDriverResolver, ResolverConfig, exceeds_max_version
from utils import find_driver_binary, make_executable

DEST_DIR = Path("chromedriver")


def download_and_extract_zip(url: str, extract_to: Path, timeout: float = 120):
    print(f"⬇️ Downloading: {url}")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    extract_to.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(io.BytesIO(response.content)) as z:
        z.extractall(extract_to)
    print(f"✅ Extracted into: {extract_to.resolve()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download chromedriver for this machine")
    parser.add_argument("--version", default="latest", help="Version to fetch (2.46, 75.0.3770.8, latest)")
    parser.add_argument("--dest", type=Path, default=DEST_DIR, help="Folder to extract into")
    parser.add_argument("--env-file", default=".env", help="Optional KEY=VALUE file with CHROMEDRIVER_* settings")
    parser.add_argument("--list", action="store_true", help="List the versions available for this machine")
    parser.add_argument("--dry-run", action="store_true", help="Resolve the URL without downloading")
    return parser


def main(argv=None, resolver=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if resolver is None:
            resolver = ChromeDriverResolver(ResolverConfig.from_env(args.env_file))
        platform = resolver.platform
        print(f"💻 Platform: {platform.os_type} / {platform.arch}")

        if args.list:
            for version in resolver.list_versions():
                print(f"  {version}")
            return 0

        result = resolver.resolve(args.version)
        if not result.found:
            print(f"📭 No chromedriver {result.requested_version} for this platform.")
            return 1
        print(f"🔗 Resolved {result.requested_version}: {result.download_path}")
        if exceeds_max_version(result.requested_version, resolver.config):
            print(f"⚠️ {result.requested_version} is newer than the supported "
                  f"maximum {resolver.config.max_version}.")

        if args.dry_run:
            return 0

        download_and_extract_zip(result.download_path, args.dest, timeout=max(resolver.config.timeout, 120))
        binary = find_driver_binary(args.dest, platform.os_type)
        if binary is None:
            print(f"❌ No chromedriver binary found in {args.dest.resolve()}")
            return 1
        if platform.os_type != "windows":
            make_executable(binary)
        print(f"🔎 Binary: {binary}")
        return 0
    except Exception as e:
        print(f"❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
