"""Tests for CSV batch input parsing."""

from __future__ import annotations

from story_extractor.orchestration.csv_input import UrlEntry, parse_url_csv


class TestParseUrlCsv:
    def test_basic(self) -> None:
        text = "url,name,priority\nhttps://a.example.com/x,Acme,HIGH\nhttps://b.example.com/y,,\n"

        assert parse_url_csv(text) == [
            UrlEntry(url="https://a.example.com/x", name="Acme", priority="high"),
            UrlEntry(url="https://b.example.com/y", name=None, priority="medium"),
        ]

    def test_alternative_headers(self) -> None:
        text = "\ufeff Website ,Company\nhttps://acme.example.com, Acme Corp \n"

        entries = parse_url_csv(text)

        assert entries == [UrlEntry(url="https://acme.example.com", name="Acme Corp")]

    def test_url_column_precedence(self) -> None:
        text = "link,url\nhttps://second.example.com,https://first.example.com\n"

        assert parse_url_csv(text)[0].url == "https://first.example.com"

    def test_invalid_and_empty_rows_skipped(self) -> None:
        text = "url\nftp://files.example.com\nnot a url\n\nhttps://ok.example.com\n"

        assert [e.url for e in parse_url_csv(text)] == ["https://ok.example.com"]

    def test_no_url_column(self) -> None:
        assert parse_url_csv("name\nAcme\n") == []

    def test_empty_document(self) -> None:
        assert parse_url_csv("") == []
