"""Unit tests for the catalog_crawler.cli.crawl command-line entry point."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from catalog_crawler.cli.crawl import _download_client, _http_client, main, parse_page_selector
from catalog_crawler.config import Settings
from catalog_crawler.models.catalog import ALL_PAGES
from catalog_crawler.services.catalog_store import CatalogStore
from tests.conftest import FakePageFetcher, make_record


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated working directory, no CATALOG_* overrides, zero delays."""
    for key in list(os.environ):
        if key.startswith("CATALOG_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CATALOG_PAGE_DELAY", "0")
    monkeypatch.setenv("CATALOG_DETAIL_DELAY", "0")
    # Logging keeps writing to the session's stderr rather than capsys's stream.
    monkeypatch.setattr("catalog_crawler.cli.crawl.configure_logging", lambda *a, **k: None)
    return tmp_path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ======================================================================
# Page selector parsing
# ======================================================================


class TestParsePageSelector:
    @pytest.mark.parametrize("value", ["all", "ALL", "-1", " all "])
    def test_all_aliases(self, value: str) -> None:
        assert parse_page_selector(value) == ALL_PAGES

    def test_positive_integer(self) -> None:
        assert parse_page_selector("7") == 7

    @pytest.mark.parametrize("value", ["0", "-3", "two", ""])
    def test_rejects_invalid(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_page_selector(value)


# ======================================================================
# Argument errors
# ======================================================================


class TestArgumentErrors:
    def test_missing_category_exits_2(self, cli_env: Path) -> None:
        assert _run(["crawl", "--page", "1"]) == 2

    def test_bad_page_exits_2(self, cli_env: Path) -> None:
        assert _run(["crawl", "--category", "nintendo", "--page", "zero"]) == 2

    def test_no_command_exits_1(self, cli_env: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run([]) == 1
        assert "crawl" in capsys.readouterr().out


# ======================================================================
# crawl
# ======================================================================


class TestCrawlCommand:
    def test_crawl_all_pages_without_details(
        self, cli_env: Path, capsys: pytest.CaptureFixture
    ) -> None:
        fetcher = FakePageFetcher(
            pages={
                1: [make_record(1, "a"), make_record(2, "b")],
                2: [make_record(3, "c")],
                3: [make_record(3, "c")],
            }
        )
        output = cli_env / "out.json"

        with patch("catalog_crawler.cli.crawl._provider", return_value=fetcher):
            code = _run(
                ["crawl", "--category", "nintendo", "--page", "all", "--no-details",
                 "--output", str(output)]
            )

        assert code == 0
        raw = json.loads(output.read_text(encoding="utf-8"))
        pages = raw["categories"]["nintendo"]["pages"]
        assert [p["pageLabel"] for p in pages] == ["all"]
        assert pages[0]["recordCount"] == 3
        stdout = capsys.readouterr().out
        assert "Listed:   3" in stdout
        assert "Saved to" in stdout

    def test_crawl_enriches_and_keeps_ids(self, cli_env: Path) -> None:
        listed = make_record(5, "a")
        detail = listed.model_copy(update={"id": 77, "region": "JP"})
        fetcher = FakePageFetcher(pages={1: [listed]}, details={listed.source_url: detail})

        with patch("catalog_crawler.cli.crawl._provider", return_value=fetcher):
            code = _run(["crawl", "--category", "nintendo"])

        assert code == 0
        records = CatalogStore(cli_env / "catalog.json").category_records("nintendo")
        assert [(r.id, r.region) for r in records] == [(5, "JP")]

    def test_empty_page_still_exits_0(self, cli_env: Path, capsys: pytest.CaptureFixture) -> None:
        with patch("catalog_crawler.cli.crawl._provider", return_value=FakePageFetcher()):
            code = _run(["crawl", "--category", "nintendo", "--page", "4"])

        assert code == 0
        assert "Nothing to save." in capsys.readouterr().out
        assert not (cli_env / "catalog.json").exists()

    def test_unwritable_output_exits_1(self, cli_env: Path) -> None:
        blocked = cli_env / "blocked.json"
        blocked.mkdir()
        fetcher = FakePageFetcher(pages={1: [make_record(1, "a")]})

        with patch("catalog_crawler.cli.crawl._provider", return_value=fetcher):
            code = _run(
                ["crawl", "--category", "nintendo", "--no-details", "--output", str(blocked)]
            )

        assert code == 1

    def test_start_id_is_applied_and_persisted(self, cli_env: Path) -> None:
        with patch("catalog_crawler.cli.crawl._provider", return_value=FakePageFetcher()):
            _run(["crawl", "--category", "nintendo", "--start-id", "500"])

        state = json.loads((cli_env / ".catalog_state.json").read_text(encoding="utf-8"))
        assert state == {"nextId": 500}

    def test_detail_fetches_are_reported(
        self, cli_env: Path, capsys: pytest.CaptureFixture
    ) -> None:
        listed = make_record(1, "zelda")
        fetcher = FakePageFetcher(pages={1: [listed]}, details={listed.source_url: listed})

        with patch("catalog_crawler.cli.crawl._provider", return_value=fetcher):
            _run(["crawl", "--category", "nintendo"])

        assert "[1/1] Fetching: Zelda" in capsys.readouterr().out


# ======================================================================
# status / download
# ======================================================================


class TestStatusAndDownload:
    def test_status_summarizes_document(
        self, cli_env: Path, capsys: pytest.CaptureFixture
    ) -> None:
        store = CatalogStore(cli_env / "catalog.json")
        store.save_page("nintendo", 1, [make_record(1, "a"), make_record(2, "b")])
        store.save_page("sega", ALL_PAGES, [make_record(3, "c", category="sega")])

        assert _run(["status"]) == 0

        stdout = capsys.readouterr().out
        assert "nintendo" in stdout
        assert "sega" in stdout
        assert "TOTAL" in stdout

    def test_status_on_missing_document(self, cli_env: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run(["status", "--input", str(cli_env / "nope.json")]) == 0
        assert "TOTAL" in capsys.readouterr().out

    def test_download_unknown_category(self, cli_env: Path, capsys: pytest.CaptureFixture) -> None:
        CatalogStore(cli_env / "catalog.json").save_page("nintendo", 1, [make_record(1, "a")])

        assert _run(["download", "--category", "sega"]) == 0

        stdout = capsys.readouterr().out
        assert "No records for category 'sega'" in stdout
        assert "nintendo" in stdout


# ======================================================================
# HTTP clients
# ======================================================================


class TestHttpClients:
    def test_page_client_always_verifies_tls(self, cli_env: Path) -> None:
        with patch("catalog_crawler.cli.crawl.httpx.AsyncClient") as client_cls:
            _http_client(Settings(download_verify_ssl=False))
        assert client_cls.call_args.kwargs["verify"] is True

    def test_download_client_skips_verification_by_default(self, cli_env: Path) -> None:
        with patch("catalog_crawler.cli.crawl.httpx.AsyncClient") as client_cls:
            _download_client(Settings())
        assert client_cls.call_args.kwargs["verify"] is False

    def test_download_verification_can_be_enabled(
        self, cli_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CATALOG_DOWNLOAD_VERIFY_SSL", "true")
        with patch("catalog_crawler.cli.crawl.httpx.AsyncClient") as client_cls:
            _download_client(Settings())
        assert client_cls.call_args.kwargs["verify"] is True
