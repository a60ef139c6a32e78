"""Pydantic v2 models for catalog records and the persisted catalog document.

All models are frozen. Changes produce new instances via
``model_copy(update={...})``, so a merged document never aliases the one
it was built from.

The JSON on disk uses camelCase keys (``categoryKey``, ``pageLabel``,
``totalRecords`` ...). Python code uses the snake_case field names;
``populate_by_name`` lets either form be used when constructing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ALL_PAGES: Literal["all"] = "all"
"""Page label for an aggregated full-category fetch."""

PageLabel = Union[int, Literal["all"]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RelatedRecord(_CatalogModel):
    """A related item linked from a record's detail page."""

    title: str
    url: str
    image_url: str | None = None


class Record(_CatalogModel):
    """One catalog item.

    ``source_url`` is the canonical detail-page URL and the deduplication
    key. ``asset_url`` starts out equal to it at listing time and is
    replaced by the real download link when the detail page is fetched.
    Everything after ``asset_url`` is only populated by a detail fetch.
    """

    id: int = Field(gt=0, description="Sequential identifier, assigned once.")
    title: str = Field(min_length=1)
    category_key: str = Field(description="Category (console/section) the record belongs to.")
    source_url: str = Field(description="Canonical detail-page URL; the dedup key.")
    asset_url: str = Field(description="Downloadable asset locator.")

    image_url: str | None = None
    rating: float | None = None
    console: str | None = None
    genre: str | None = None
    region: str | None = None
    release_date: str | None = None
    download_count: int | None = None
    size: str | None = None
    file_name: str | None = None
    redirect_asset_url: str | None = Field(
        default=None, description="Direct download URL built from file_name."
    )
    related: list[RelatedRecord] = Field(default_factory=list)


class PageEntry(_CatalogModel):
    """One fetched page's worth of records for one category."""

    page_label: PageLabel
    record_count: int = Field(ge=0)
    fetched_at: datetime
    records: list[Record] = Field(default_factory=list)

    @field_validator("page_label", mode="before")
    @classmethod
    def _coerce_page_label(cls, value: object) -> object:
        # Older documents stored labels as strings ("1", "all").
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool) and value <= 0:
            raise ValueError("numeric page labels must be positive")
        return value

    @property
    def is_numeric(self) -> bool:
        return self.page_label != ALL_PAGES


class CategoryDocument(_CatalogModel):
    """All fetched pages for one category, with aggregate counts."""

    pages: list[PageEntry] = Field(default_factory=list)
    total_pages: int = 0
    total_records: int = 0
    last_updated: datetime | None = None

    def page(self, label: PageLabel) -> PageEntry | None:
        for entry in self.pages:
            if entry.page_label == label:
                return entry
        return None


class CatalogDocument(_CatalogModel):
    """Root persisted artifact: categories keyed by category key."""

    categories: dict[str, CategoryDocument] = Field(default_factory=dict)
    total_categories: int = 0
    last_updated: datetime | None = None


class AllocatorState(_CatalogModel):
    """Persisted identifier counter."""

    next_id: int = Field(gt=0)
