import pytest

from politecrawl import main as main_module
from politecrawl.coordinator import Crawler
from politecrawl.main import parse_args, parse_max_pages
from politecrawl.utils.logger import reset_logger


@pytest.mark.parametrize(
    "raw,expected",
    [(None, None), ("25", 25), ("abc", None), ("0", None), ("-3", None)],
)
def test_parse_max_pages(raw, expected):
    assert parse_max_pages(raw) == expected


def test_parse_args_positional_and_options():
    args = parse_args(["https://example.com", "10", "--workers", "3", "--delay", "0.5", "--no-robots"])

    assert args.start_url == "https://example.com"
    assert args.max_pages == "10"
    assert args.workers == 3
    assert args.delay == 0.5
    assert args.no_robots is True


def test_main_prints_progress_and_summary(monkeypatch, capsys, fake_site):
    site = fake_site(
        pages={
            "https://cli.example/": '<title>CLI Home</title><a href="/two">two</a>',
            "https://cli.example/two": "<title>Second</title>",
        }
    )

    def crawler_factory(config, reporter, respect_robots):
        return Crawler(config, reporter=reporter, transport=site.transport, respect_robots=respect_robots)

    monkeypatch.setattr(main_module, "Crawler", crawler_factory)

    try:
        code = main_module.main(
            ["https://cli.example/", "not-a-number", "--delay", "0", "--workers", "2", "--log-level", "ERROR"]
        )
    finally:
        reset_logger()

    out = capsys.readouterr().out
    assert code == 0
    assert "Maximum pages to crawl: 100" in out
    assert "[cli.example] CLI Home" in out
    assert "[cli.example] Second" in out
    assert "Total pages crawled: 2" in out
    assert "Total URLs discovered: 2" in out
