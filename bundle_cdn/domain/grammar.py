from __future__ import annotations

import re

from .refs import LOCALES, AssetRef, ManifestRef, Platform, RequestKind

__all__ = [
    "GrammarViolation",
    "parse_asset_path",
    "parse_manifest_path",
    "parse_path",
]

_PLATFORMS = "|".join(re.escape(p.value) for p in Platform)
_HASH_CHARS = "[A-Z2-7=]"

# Prefix either sits in its own segment (`AB/<hash>`) or leads a 54 character
# last segment (`AB<hash>`). Either way it must start a segment.
_ASSET_RE = re.compile(
    rf"(?P<platform>{_PLATFORMS})/(?P<middle>.+)/"
    rf"(?P<prefix>{_HASH_CHARS}{{2}})/?(?P<hash>{_HASH_CHARS}{{52}})"
)
_MANIFEST_RE = re.compile(
    rf"(?P<platform>{_PLATFORMS})/(?P<id>[A-Za-z0-9]{{1,16}})/"
    rf"(?P<filename>assetbundle\.(?:(?P<locale>{'|'.join(LOCALES)})\.)?manifest)"
)


class GrammarViolation(ValueError):
    """Raised when a request path does not match the expected shape.

    The `code` attribute is logged as a stable machine code.
    """

    code: str = "grammar_violation"

    def __init__(self, kind: RequestKind, path: str) -> None:
        super().__init__(f"path does not match {kind.value} grammar: {path!r}")
        self.kind = kind
        self.path = path


def parse_asset_path(path: str) -> AssetRef:
    """Decompose `<platform>/<middle>/<prefix>[/]<hash>` into an `AssetRef`.

    Raises:
        GrammarViolation: if the path does not match.
    """
    m = _ASSET_RE.fullmatch(path)
    if m is None:
        raise GrammarViolation(RequestKind.asset, path)
    return AssetRef(
        platform=Platform(m["platform"]),
        middle=m["middle"],
        prefix=m["prefix"],
        hash=m["hash"],
    )


def parse_manifest_path(path: str) -> ManifestRef:
    """Decompose `<platform>/<id>/assetbundle[.<locale>].manifest` into a `ManifestRef`.

    Raises:
        GrammarViolation: if the path does not match.
    """
    m = _MANIFEST_RE.fullmatch(path)
    if m is None:
        raise GrammarViolation(RequestKind.manifest, path)
    return ManifestRef(
        platform=Platform(m["platform"]),
        id=m["id"],
        filename=m["filename"],
        locale=m["locale"],
    )


def parse_path(kind: RequestKind, path: str) -> AssetRef | ManifestRef:
    """Validate `path` against the grammar for `kind`."""
    if kind is RequestKind.asset:
        return parse_asset_path(path)
    return parse_manifest_path(path)
