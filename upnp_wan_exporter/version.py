"""Version management for the UPnP WAN exporter"""

import os
import subprocess
from functools import lru_cache
from datetime import datetime


# Default version for development
DEFAULT_VERSION = "dev"

VERSION_ENV = "UPNP_WAN_VERSION"
VERSION_FILE = os.path.join(os.path.dirname(__file__), "..", "VERSION")


def _git(*args: str) -> str:
    """Run a git command next to this file, returning stripped stdout or ''"""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=os.path.dirname(__file__)
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass
    return ""


@lru_cache(maxsize=1)
def get_version() -> str:
    """
    Get the application version.

    Priority:
    1. UPNP_WAN_VERSION environment variable (set by Docker/CI)
    2. VERSION file in project root
    3. Git tag (for local development)
    4. Default to "dev"
    """
    version = os.environ.get(VERSION_ENV)
    if version and version.strip():
        return version.strip()

    if os.path.exists(VERSION_FILE):
        with open(VERSION_FILE, "r") as f:
            version = f.read().strip()
            if version:
                return version

    return _git("describe", "--tags", "--always") or DEFAULT_VERSION


@lru_cache(maxsize=1)
def get_build_info() -> dict:
    """
    Get detailed build information.

    Returns dict with:
    - version: The version string
    - build_date: When the build was created (if available)
    - commit: Git commit SHA (if available)
    """
    info = {
        "version": get_version(),
        "build_date": os.environ.get("UPNP_WAN_BUILD_DATE"),
        "commit": os.environ.get("UPNP_WAN_COMMIT") or _git("rev-parse", "--short", "HEAD") or None,
    }

    if not info["build_date"]:
        info["build_date"] = datetime.utcnow().strftime("%Y-%m-%d")

    # Remove None values
    return {k: v for k, v in info.items() if v is not None}


__version__ = get_version()
