"""Game asset bundle and manifest server.

Exposes `__version__`; the ASGI app is built by `bundle_cdn.main.create_app`.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bundle-cdn")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
