"""Server configuration: typed models plus JSON load/save.

Two on-disk shapes are accepted:

    flat:   {"assetpaths": [...], "manifestpaths": [...], "port": 3000,
             "ssl": false, "cert": "", "key": ""}
    nested: {"locations": {"assetbundles": [...], "manifests": [...]},
             "server": {"port": 3000, "https": {"enabled": false, "cert": "", "key": ""}}}

Both load into the same frozen `ServerConfig`. Saving always writes the flat
shape. The config is built once at startup and shared read-only by every
request.
"""
from __future__ import annotations

import json
import os
import ssl
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .logging_conf import get_logger

__all__ = [
    "CONFIG_ENV",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PEER_HEADER",
    "DEFAULT_PORT",
    "ConfigError",
    "StorageRoots",
    "ServerOptions",
    "ServerConfig",
    "default_config_path",
    "load_config",
    "save_config",
    "check_roots",
    "preflight_tls",
]

CONFIG_ENV = "BUNDLE_CDN_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_PEER_HEADER = "reliable_token"
DEFAULT_PORT = 3000

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Fatal startup misconfiguration. Never recovered in-process."""

    code: str = "config_fatal"


class StorageRoots(BaseModel):
    """Ordered search roots. Order is search priority."""

    model_config = ConfigDict(frozen=True)

    assetbundles: tuple[str, ...] = ()
    manifests: tuple[str, ...] = ()


class ServerOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(DEFAULT_PORT, ge=0, le=65535)
    tls: bool = False
    cert: str = ""
    key: str = ""
    peer_header: str = Field(DEFAULT_PEER_HEADER, min_length=1)
    # Bounds root lookup + open; None disables it. Existence checks and fstat
    # are abandoned on expiry, but a stuck open/read only fails once it returns.
    request_timeout: Optional[float] = Field(None, gt=0)


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    roots: StorageRoots = StorageRoots()
    server: ServerOptions = ServerOptions()

    @classmethod
    def from_json_dict(cls, data: Any) -> "ServerConfig":
        """Build a config from either accepted JSON shape.

        Raises:
            ConfigError: if the document matches neither shape.
        """
        if not isinstance(data, dict):
            raise ConfigError("config root must be a JSON object")
        try:
            if "locations" in data or "server" in data:
                return _NestedDoc.model_validate(data).to_config()
            return _FlatDoc.model_validate(data).to_config()
        except ValidationError as e:
            raise ConfigError(f"config schema invalid: {e}") from e

    def to_json_dict(self) -> dict[str, Any]:
        """Return the flat on-disk representation."""
        doc: dict[str, Any] = {
            "assetpaths": list(self.roots.assetbundles),
            "manifestpaths": list(self.roots.manifests),
            "port": self.server.port,
            "ssl": self.server.tls,
            "key": self.server.key,
            "cert": self.server.cert,
            "host": self.server.host,
            "peer_header": self.server.peer_header,
        }
        if self.server.request_timeout is not None:
            doc["request_timeout"] = self.server.request_timeout
        return doc

    def with_manifests(self, extra: list[str]) -> "ServerConfig":
        """Return a copy with `extra` appended to the manifest roots."""
        roots = self.roots.model_copy(
            update={"manifests": self.roots.manifests + tuple(extra)}
        )
        return self.model_copy(update={"roots": roots})

    def with_overrides(self, *, host: str | None = None, port: int | None = None) -> "ServerConfig":
        update: dict[str, Any] = {}
        if host is not None:
            update["host"] = host
        if port is not None:
            update["port"] = port
        if not update:
            return self
        merged = self.server.model_dump() | update
        try:
            server = ServerOptions.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"invalid override: {e}") from e
        return self.model_copy(update={"server": server})


# ------------------------
# On-disk document shapes
# ------------------------
class _FlatDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    assetpaths: list[str]
    manifestpaths: list[str] = []
    port: int = DEFAULT_PORT
    ssl: bool = False
    cert: str = ""
    key: str = ""
    host: str = "0.0.0.0"
    peer_header: str = DEFAULT_PEER_HEADER
    request_timeout: Optional[float] = None

    def to_config(self) -> ServerConfig:
        return ServerConfig(
            roots=StorageRoots(
                assetbundles=tuple(self.assetpaths),
                manifests=tuple(self.manifestpaths),
            ),
            server=ServerOptions(
                host=self.host,
                port=self.port,
                tls=self.ssl,
                cert=self.cert,
                key=self.key,
                peer_header=self.peer_header,
                request_timeout=self.request_timeout,
            ),
        )


class _HttpsDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    cert: str = ""
    key: str = ""


class _ServerDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    https: _HttpsDoc = _HttpsDoc()
    peer_header: str = DEFAULT_PEER_HEADER
    request_timeout: Optional[float] = None


class _LocationsDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    assetbundles: list[str]
    manifests: list[str] = []


class _NestedDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    locations: _LocationsDoc
    server: _ServerDoc = _ServerDoc()

    def to_config(self) -> ServerConfig:
        return ServerConfig(
            roots=StorageRoots(
                assetbundles=tuple(self.locations.assetbundles),
                manifests=tuple(self.locations.manifests),
            ),
            server=ServerOptions(
                host=self.server.host,
                port=self.server.port,
                tls=self.server.https.enabled,
                cert=self.server.https.cert,
                key=self.server.https.key,
                peer_header=self.server.peer_header,
                request_timeout=self.server.request_timeout,
            ),
        )


# ------------------------
# Load / save
# ------------------------
def default_config_path() -> Path:
    """Return the config path from BUNDLE_CDN_CONFIG, or ./config.json."""
    return Path(os.getenv(CONFIG_ENV, DEFAULT_CONFIG_PATH))


def load_config(path: Path) -> ServerConfig:
    """Read and validate a config file.

    Raises:
        ConfigError: if the file cannot be read or deserialized.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to deserialize {path}: {e}") from e
    return ServerConfig.from_json_dict(data)


def save_config(config: ServerConfig, path: Path) -> None:
    """Write `config` as pretty-printed flat JSON."""
    body = json.dumps(config.to_json_dict(), indent=2, ensure_ascii=False)
    try:
        Path(path).write_text(body + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write new config to {path}: {e}") from e
    logger.info("Saved config.", extra={"event": "config_saved", "config_path": str(path)})


def check_roots(config: ServerConfig) -> None:
    """Refuse configs without asset roots; warn when manifest roots are missing.

    Raises:
        ConfigError: if no asset roots are configured.
    """
    if not config.roots.assetbundles:
        raise ConfigError(
            "No asset folders configured. Please edit the config file to point "
            "to the location of your assets."
        )
    if not config.roots.manifests:
        logger.warning(
            "No manifest folders configured. The server will be unable to serve "
            "file lists for fresh downloads.",
            extra={"event": "no_manifest_roots"},
        )


def preflight_tls(options: ServerOptions) -> None:
    """Load the PEM cert/key pair once so a bad pair fails before binding.

    Raises:
        ConfigError: if the pair is missing or unusable.
    """
    if not options.tls:
        return
    if not options.cert or not options.key:
        raise ConfigError("Failed to load TLS config: cert and key paths are required")
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        ctx.load_cert_chain(certfile=options.cert, keyfile=options.key)
    except (OSError, ssl.SSLError) as e:
        raise ConfigError(f"Failed to load TLS config: {e}") from e
