import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from bundle_cdn.config import (
    ConfigError,
    ServerConfig,
    ServerOptions,
    check_roots,
    default_config_path,
    load_config,
    preflight_tls,
    save_config,
)

from .conftest import make_config


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_flat_shape(tmp_path: Path):
    path = _write(
        tmp_path / "config.json",
        {
            "assetpaths": ["a1", "a2"],
            "manifestpaths": ["m1"],
            "port": 8443,
            "ssl": True,
            "cert": "c.pem",
            "key": "k.pem",
        },
    )
    config = load_config(path)
    assert config.roots.assetbundles == ("a1", "a2")
    assert config.roots.manifests == ("m1",)
    assert config.server.port == 8443
    assert config.server.tls is True
    assert config.server.cert == "c.pem"
    assert config.server.key == "k.pem"
    assert config.server.peer_header == "reliable_token"
    assert config.server.request_timeout is None


def test_flat_shape_manifestpaths_default_empty(tmp_path: Path):
    config = load_config(_write(tmp_path / "c.json", {"assetpaths": ["a"], "port": 3000}))
    assert config.roots.manifests == ()
    assert config.server.tls is False


def test_nested_shape(tmp_path: Path):
    path = _write(
        tmp_path / "config.json",
        {
            "locations": {"assetbundles": ["DownloadOutput/Android"], "manifests": ["manifests/Android"]},
            "server": {"port": 3001, "https": {"enabled": True, "cert": "c", "key": "k"}},
        },
    )
    config = load_config(path)
    assert config.roots.assetbundles == ("DownloadOutput/Android",)
    assert config.roots.manifests == ("manifests/Android",)
    assert config.server.port == 3001
    assert config.server.tls is True
    assert (config.server.cert, config.server.key) == ("c", "k")


def test_save_writes_flat_shape_and_reloads(tmp_path: Path):
    config = make_config(["z", "a", "m"], ["m2", "m1"], port=4000, request_timeout=2.5)
    path = tmp_path / "config.json"
    save_config(config, path)

    doc = json.loads(path.read_text(encoding="utf-8"))
    # Order is preserved exactly.
    assert doc["assetpaths"] == ["z", "a", "m"]
    assert doc["manifestpaths"] == ["m2", "m1"]
    assert doc["ssl"] is False
    assert load_config(path) == config


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[]",
        json.dumps({"manifestpaths": []}),
        json.dumps({"assetpaths": "not-a-list"}),
        json.dumps({"assetpaths": [], "port": 70000}),
        json.dumps({"locations": {"manifests": []}}),
    ],
)
def test_bad_documents_are_fatal(tmp_path: Path, raw: str):
    path = tmp_path / "config.json"
    path.write_text(raw, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_unreadable_file_is_fatal(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.json")


def test_config_is_immutable():
    config = make_config(["a"])
    with pytest.raises(ValidationError):
        config.server.port = 1
    with pytest.raises(AttributeError):
        config.roots.assetbundles.append("b")


def test_with_manifests_appends():
    config = make_config(["a"], ["m1"]).with_manifests(["m2"])
    assert config.roots.manifests == ("m1", "m2")


def test_with_overrides():
    config = make_config(["a"])
    assert config.with_overrides() is config
    updated = config.with_overrides(host="127.0.0.1", port=9000)
    assert (updated.server.host, updated.server.port) == ("127.0.0.1", 9000)
    with pytest.raises(ConfigError):
        config.with_overrides(port=-1)


def test_check_roots_requires_asset_roots():
    with pytest.raises(ConfigError):
        check_roots(make_config([], ["m"]))


def test_check_roots_warns_without_manifests(caplog):
    with caplog.at_level(logging.WARNING, logger="config"):
        check_roots(make_config(["a"]))
    assert any(getattr(r, "event", None) == "no_manifest_roots" for r in caplog.records)


def test_preflight_tls_disabled_is_noop():
    preflight_tls(ServerOptions(tls=False, cert="nope", key="nope"))


def test_preflight_tls_missing_files(tmp_path: Path):
    with pytest.raises(ConfigError):
        preflight_tls(ServerOptions(tls=True, cert=str(tmp_path / "c.pem"), key=str(tmp_path / "k.pem")))
    with pytest.raises(ConfigError):
        preflight_tls(ServerOptions(tls=True))


def test_preflight_tls_garbage_pem(tmp_path: Path):
    cert = tmp_path / "c.pem"
    key = tmp_path / "k.pem"
    cert.write_text("not a cert")
    key.write_text("not a key")
    with pytest.raises(ConfigError):
        preflight_tls(ServerOptions(tls=True, cert=str(cert), key=str(key)))


def test_default_config_path(monkeypatch):
    monkeypatch.delenv("BUNDLE_CDN_CONFIG", raising=False)
    assert default_config_path() == Path("config.json")
    monkeypatch.setenv("BUNDLE_CDN_CONFIG", "/etc/cdn.json")
    assert default_config_path() == Path("/etc/cdn.json")


def test_from_json_dict_rejects_non_object():
    with pytest.raises(ConfigError):
        ServerConfig.from_json_dict(["a"])
