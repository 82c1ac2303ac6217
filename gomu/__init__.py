from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gomu")
except PackageNotFoundError:
    __version__ = "undefined"

__all__ = ["__version__"]
