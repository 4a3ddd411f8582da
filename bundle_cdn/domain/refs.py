from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Platform",
    "RequestKind",
    "LOCALES",
    "AssetRef",
    "ManifestRef",
]

LOCALES = ("en_us", "en_eu", "zh_cn", "zh_tw")


class Platform(str, Enum):
    android = "Android"
    ios = "iOS"


class RequestKind(str, Enum):
    asset = "asset"
    manifest = "manifest"


class AssetRef(BaseModel):
    """A validated asset bundle request.

    `middle` is whatever sat between the platform and the prefix; it is kept
    for logging only and never used to build a filesystem path.
    """

    model_config = ConfigDict(frozen=True)

    platform: Platform
    middle: str = Field(..., min_length=1)
    prefix: str = Field(..., min_length=2, max_length=2)
    hash: str = Field(..., min_length=52, max_length=52)

    @property
    def relative_parts(self) -> tuple[str, str]:
        return (self.prefix, self.hash)


class ManifestRef(BaseModel):
    """A validated manifest request."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    id: str = Field(..., min_length=1, max_length=16)
    filename: str
    locale: str | None = None

    @property
    def relative_parts(self) -> tuple[str, str]:
        return (self.id, self.filename)
