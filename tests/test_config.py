"""Unit tests for configuration loading and the status line."""

import io

import pytest

from harvester.config import HarvesterConfig
from harvester.config_loader import ConfigLoader
from harvester.utils import StatusReporter


class TestHarvesterConfig:
    def test_defaults(self) -> None:
        cfg = HarvesterConfig()
        assert cfg.liveness_timeout == 30.0
        assert cfg.settle_delay == 2.0
        assert cfg.browser_headless is False
        assert cfg.max_items is None

    def test_update_from_yaml(self) -> None:
        cfg = HarvesterConfig()
        cfg.update_from_yaml({
            "input": {"seed_file": "pages.json"},
            "state": {"queue_db": "state/q.db"},
            "output": {"dir": "csv_out"},
            "timings": {"liveness_timeout": 45, "scroll_interval": 2},
            "limits": {"max_items": 10},
            "browser": {"headless": True, "viewport": {"width": 1280}},
        })
        assert cfg.seed_file == "pages.json"
        assert cfg.queue_db == "state/q.db"
        assert cfg.output_dir == "csv_out"
        assert cfg.liveness_timeout == 45
        assert cfg.scroll_interval == 2
        assert cfg.max_items == 10
        assert cfg.browser_headless is True
        assert cfg.viewport_width == 1280
        assert cfg.viewport_height == 900

    def test_update_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("HARVESTER_LIVENESS_TIMEOUT", "12.5")
        monkeypatch.setenv("HARVESTER_HEADLESS", "true")
        monkeypatch.setenv("HARVESTER_MAX_ITEMS", "not-a-number")
        cfg = HarvesterConfig()
        cfg.update_from_env()
        assert cfg.liveness_timeout == 12.5
        assert cfg.browser_headless is True
        assert cfg.max_items is None

    def test_validate_clamps_bad_values(self) -> None:
        cfg = HarvesterConfig()
        cfg.liveness_timeout = 0
        cfg.settle_delay = -1
        cfg.scroll_max_stale_rounds = 0
        cfg.max_items = 0
        cfg.validate()
        assert cfg.liveness_timeout == 30.0
        assert cfg.settle_delay == 0.0
        assert cfg.scroll_max_stale_rounds == 1
        assert cfg.max_items is None

    def test_extraction_options_in_milliseconds(self) -> None:
        cfg = HarvesterConfig()
        assert cfg.extraction_options() == {
            "postsClickWaitMs": 3000,
            "scrollIntervalMs": 3000,
            "maxStaleRounds": 3,
        }


class TestConfigLoader:
    def test_load_explicit_file(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("timings:\n  liveness_timeout: 20\n", encoding="utf-8")
        assert ConfigLoader.load_config(str(path)) == {"timings": {"liveness_timeout": 20}}

    def test_missing_explicit_file_gives_defaults(self, tmp_path) -> None:
        assert ConfigLoader.load_config(str(tmp_path / "nope.yaml")) == {}

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("timings: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigLoader.load_config(str(path))

    def test_sample_config_round_trips(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        ConfigLoader.create_sample_config(path)
        loaded = ConfigLoader.load_config(str(path))

        cfg = HarvesterConfig()
        cfg.update_from_yaml(loaded)
        assert cfg.liveness_timeout == 30
        assert cfg.output_dir == "harvested"
        assert cfg.max_items is None


class TestStatusReporter:
    def test_rewrites_single_line(self) -> None:
        stream = io.StringIO()
        status = StatusReporter(stream)
        status("Navigating to https://x/long-page-name...")
        status("Done.")
        status.finish()

        output = stream.getvalue()
        assert output.startswith("\rNavigating to https://x/long-page-name...")
        assert "\rDone." in output
        assert output.endswith("\n")
        assert status.last_status == "Done."

    def test_disabled_only_tracks(self) -> None:
        stream = io.StringIO()
        status = StatusReporter(stream, enabled=False)
        status.report("Scraping...")
        assert stream.getvalue() == ""
        assert status.last_status == "Scraping..."
