import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import FakeFetcher, make_catalog, make_distribution, make_product
from version_tracker.cli import ColoredFormatter, main
from version_tracker.constants import MAC_CATALOGS

CATALOG_URL = "https://catalog.test/index.sucatalog"
HIGH_SIERRA_URL = "https://swdist.test/091-39211/English.dist"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "tracker.yaml"
    path.write_text(
        "catalog_base_url: https://catalog.test/\n"
        "catalogs:\n"
        "  main: index.sucatalog\n"
    )
    return path


class TestCatalogsCommand:

    def test_lists_defaults(self, runner):
        result = runner.invoke(main, ["catalogs"])
        assert result.exit_code == 0, result.output
        assert "HighSierra" in result.output
        assert list(MAC_CATALOGS)[0] in result.output
        assert "10.11.0" in result.output

    def test_uses_config_file(self, runner, config_path):
        result = runner.invoke(main, ["-c", str(config_path), "catalogs"])
        assert result.exit_code == 0, result.output
        assert CATALOG_URL in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["-c", str(tmp_path / "nope.yaml"), "catalogs"])
        assert result.exit_code != 0


class TestCheckCommand:
    """
    Tests for the one-shot scrape command, with HTTP faked out.
    """

    def test_prints_versions(self, runner, config_path):
        fetcher = FakeFetcher(
            {
                CATALOG_URL: make_catalog({"091-39211": make_product(HIGH_SIERRA_URL)}),
                HIGH_SIERRA_URL: make_distribution("10.13.6"),
            }
        )
        with patch("version_tracker.tracker.ConditionalFetcher", return_value=fetcher):
            result = runner.invoke(main, ["-c", str(config_path), "check"])
        assert result.exit_code == 0, result.output
        assert "updated" in result.output
        assert "HighSierra" in result.output
        assert "10.13.6" in result.output
        assert fetcher.closed

    def test_failure_exit_code(self, runner, config_path):
        fetcher = FakeFetcher({CATALOG_URL: b"not a catalog"})
        with patch("version_tracker.tracker.ConditionalFetcher", return_value=fetcher):
            result = runner.invoke(main, ["-c", str(config_path), "check"])
        assert result.exit_code == 1
        assert "failed" in result.output


class TestRunCommand:

    def test_invalid_interval(self, runner):
        result = runner.invoke(main, ["run", "--interval", "0"])
        assert result.exit_code == 2

    def test_runs_until_interrupted(self, runner, config_path):
        with (
            patch("version_tracker.cli.Tracker") as tracker_class,
            patch("version_tracker.cli.signal.signal"),
        ):
            tracker = tracker_class.return_value
            tracker.is_alive.side_effect = [True, KeyboardInterrupt()]
            result = runner.invoke(
                main, ["-c", str(config_path), "run", "--interval", "5"]
            )
        assert result.exit_code == 0, result.output
        config = tracker_class.call_args.args[0]
        assert config.interval == 5
        tracker.start.assert_called_once()
        tracker.close.assert_called_once()


class TestColoredFormatter:
    """
    Tests for the console log formatter.
    """

    def make_record(self, level=logging.WARNING):
        return logging.LogRecord(
            "version_tracker.scrapers.macos",
            level,
            __file__,
            1,
            "Branch %s: %s",
            ("Sierra", "bad version"),
            None,
        )

    def test_abbreviates_level(self):
        formatter = ColoredFormatter("%(levelname)s | %(message)s", color=False)
        line = formatter.format(self.make_record())
        assert line == "WRN | Branch Sierra: bad version"

    def test_colors_whole_line(self):
        formatter = ColoredFormatter("%(levelname)s | %(message)s")
        line = formatter.format(self.make_record(logging.ERROR))
        assert line.startswith("\033[31mERR | ")
        assert line.endswith("\033[0m")

    def test_record_left_unchanged(self):
        record = self.make_record()
        ColoredFormatter("%(levelname)s | %(message)s").format(record)
        assert record.levelname == "WARNING"
        assert record.msg == "Branch %s: %s"
        assert record.getMessage() == "Branch Sierra: bad version"
