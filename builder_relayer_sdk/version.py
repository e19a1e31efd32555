"""
Package version: installed distribution metadata, or pyproject.toml in a
source checkout.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "builder-relayer-sdk"
FALLBACK_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def read_version(pyproject: pathlib.Path = PYPROJECT) -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        pass
    try:
        with pyproject.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION


__version__ = read_version()
