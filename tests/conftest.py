from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bundle_cdn.config import ServerConfig, ServerOptions, StorageRoots
from bundle_cdn.main import create_app

# 52 characters drawn from [A-Z2-7].
HASH = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567ABCDEFGHIJKLMNOPQRST"
PREFIX = "AB"
MANIFEST_ID = "y2XM6giU6zz56wCm"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def write_asset(root: Path, data: bytes, prefix: str = PREFIX, hash_: str = HASH) -> Path:
    target = root / prefix / hash_
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target


def write_manifest(root: Path, data: bytes, filename: str = "assetbundle.manifest") -> Path:
    target = root / MANIFEST_ID / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target


def make_config(asset_roots=(), manifest_roots=(), **server) -> ServerConfig:
    return ServerConfig(
        roots=StorageRoots(
            assetbundles=tuple(str(r) for r in asset_roots),
            manifests=tuple(str(r) for r in manifest_roots),
        ),
        server=ServerOptions(**server),
    )


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    root = tmp_path / "assets"
    root.mkdir()
    return root


@pytest.fixture
def manifest_root(tmp_path: Path) -> Path:
    root = tmp_path / "manifests"
    root.mkdir()
    return root


@pytest.fixture
def client(asset_root: Path, manifest_root: Path) -> TestClient:
    app = create_app(make_config([asset_root], [manifest_root]))
    return TestClient(app)
