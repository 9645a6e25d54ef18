"""Bindery - RPC client and server binding generator."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bindery")
except PackageNotFoundError:
    __version__ = "(local)"
