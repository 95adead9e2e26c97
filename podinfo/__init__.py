"""pod-typeinfo - Runtime layout reflection for plain-old-data types."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pod-typeinfo")
except PackageNotFoundError:
    __version__ = "(local)"
