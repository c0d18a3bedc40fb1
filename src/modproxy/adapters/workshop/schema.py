"""Pydantic models describing the workshop ``_next/data`` payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _number_to_str(value: object) -> object:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return _blank_to_none(value)


class WorkshopBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AuthorPayload(WorkshopBaseModel):
    username: str | None = None


class PreviewPayload(WorkshopBaseModel):
    url: str | None = None


class AssetPayload(WorkshopBaseModel):
    id: str
    name: str = ""
    summary: str | None = None
    current_version_number: str | None = Field(default=None, alias="currentVersionNumber")
    current_version_size: int | None = Field(default=None, alias="currentVersionSize")
    author: AuthorPayload | None = None
    previews: list[PreviewPayload] = Field(default_factory=list)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    _normalize_version = field_validator("current_version_number", mode="before")(_number_to_str)
    _normalize_summary = field_validator("summary", mode="before")(_blank_to_none)


class DependencyAssetPayload(WorkshopBaseModel):
    id: str | None = None
    name: str | None = None


class DependencyPayload(WorkshopBaseModel):
    """One entry of any dependency-like list, nested ``asset`` or flat."""

    id: str | None = None
    name: str | None = None
    asset: DependencyAssetPayload | None = None
    total_file_size: int | None = Field(default=None, alias="totalFileSize")
    file_size: int | None = Field(default=None, alias="fileSize")

    @property
    def dependency_id(self) -> str | None:
        return (self.asset.id if self.asset else None) or self.id

    @property
    def dependency_name(self) -> str | None:
        return (self.asset.name if self.asset else None) or self.name

    @property
    def size(self) -> int | None:
        return self.total_file_size or self.file_size


class VersionPayload(WorkshopBaseModel):
    version_number: str | None = Field(
        default=None, validation_alias=AliasChoices("version", "versionNumber")
    )
    version_size: int | None = Field(
        default=None, validation_alias=AliasChoices("totalFileSize", "versionSize")
    )
    release_date: datetime | None = Field(
        default=None, validation_alias=AliasChoices("createdAt", "releaseDate")
    )

    _normalize_version = field_validator("version_number", mode="before")(_number_to_str)


class ItemPageProps(WorkshopBaseModel):
    asset: dict[str, object] | None = None


class ItemResponse(WorkshopBaseModel):
    page_props: ItemPageProps = Field(alias="pageProps")


class ChangelogPageProps(WorkshopBaseModel):
    versions: list[dict[str, object]] = Field(default_factory=list)


class ChangelogResponse(WorkshopBaseModel):
    page_props: ChangelogPageProps = Field(alias="pageProps")


class SearchAssets(WorkshopBaseModel):
    rows: list[dict[str, object]] = Field(default_factory=list)
    count: int | None = None


class SearchPageProps(WorkshopBaseModel):
    assets: SearchAssets = Field(default_factory=SearchAssets)


class SearchResponse(WorkshopBaseModel):
    page_props: SearchPageProps = Field(alias="pageProps")


__all__ = [
    "AssetPayload",
    "AuthorPayload",
    "ChangelogResponse",
    "DependencyPayload",
    "ItemResponse",
    "PreviewPayload",
    "SearchResponse",
    "VersionPayload",
]
