"""Unit tests for detail-page enrichment."""

from __future__ import annotations

import pytest

from catalog_crawler.services.enrichment import EnrichmentService
from tests.conftest import FakePageFetcher, make_record


def _detail(record_id: int, slug: str, **extra):
    return make_record(
        record_id,
        slug,
        title=f"{slug} (detail)",
        region="USA",
        file_name=f"{slug}.zip",
        redirect_asset_url=f"https://dl.test/roms/{slug}.zip",
        **extra,
    )


class TestEnrichment:
    @pytest.mark.asyncio
    async def test_listing_id_survives_enrichment(self) -> None:
        listed = make_record(7, "mario")
        # The adapter minted its own id for the detail fetch.
        fetcher = FakePageFetcher(details={listed.source_url: _detail(42, "mario")})

        result = await EnrichmentService(fetcher, detail_delay=0).enrich([listed])

        assert len(result.records) == 1
        enriched = result.records[0]
        assert enriched.id == 7
        assert enriched.region == "USA"
        assert enriched.redirect_asset_url == "https://dl.test/roms/mario.zip"

    @pytest.mark.asyncio
    async def test_category_comes_from_listing(self) -> None:
        listed = make_record(3, "sonic", category="sega")
        detail = _detail(99, "sonic").model_copy(update={"category_key": "roms"})
        fetcher = FakePageFetcher(details={listed.source_url: detail})

        result = await EnrichmentService(fetcher, detail_delay=0).enrich([listed])

        assert result.records[0].category_key == "sega"

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_order_kept(self) -> None:
        a, b, c = make_record(1, "a"), make_record(2, "b"), make_record(3, "c")
        fetcher = FakePageFetcher(
            details={
                a.source_url: _detail(10, "a"),
                b.source_url: None,
                c.source_url: _detail(11, "c"),
            }
        )

        result = await EnrichmentService(fetcher, detail_delay=0).enrich([a, b, c])

        assert [r.id for r in result.records] == [1, 3]
        assert result.failed == [b]
        assert fetcher.detail_calls == [a.source_url, b.source_url, c.source_url]

    @pytest.mark.asyncio
    async def test_adapter_exception_does_not_abort_batch(self) -> None:
        a, b = make_record(1, "a"), make_record(2, "b")
        fetcher = FakePageFetcher(
            details={a.source_url: RuntimeError("timeout"), b.source_url: _detail(5, "b")}
        )

        result = await EnrichmentService(fetcher, detail_delay=0).enrich([a, b])

        assert [r.id for r in result.records] == [2]
        assert result.failed == [a]

    @pytest.mark.asyncio
    async def test_progress_callback(self) -> None:
        records = [make_record(1, "a"), make_record(2, "b")]
        seen: list[tuple[int, int, int]] = []

        await EnrichmentService(FakePageFetcher(), detail_delay=0).enrich(
            records, on_progress=lambda i, total, r: seen.append((i, total, r.id))
        )

        assert seen == [(1, 2, 1), (2, 2, 2)]
