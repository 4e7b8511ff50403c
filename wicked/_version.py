"""Package version: installed distribution metadata, else pyproject.toml."""
from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _checkout_version() -> str:
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    if not pyproject.is_file():
        return "0.0.0"
    match = re.search(r'^version\s*=\s*"([^"]+)"', pyproject.read_text(), re.MULTILINE)
    return match.group(1) if match else "0.0.0"


try:
    __version__: str = version("wicked")
except PackageNotFoundError:
    __version__ = _checkout_version()
