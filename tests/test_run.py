"""
Tests for the harvest CLI.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from denueworker.harvester.run import build_parser, main


@pytest.fixture
def no_dotenv():
    with patch("denueworker.harvester.run.load_dotenv"):
        yield


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.mode == "fast"
        assert args.limit is None
        assert args.sector == "0"
        assert args.city_km is None
        assert args.step_km == 5.0

    def test_equals_syntax_and_camel_case_aliases(self):
        args = build_parser().parse_args(
            ["--mode=full", "--limit=10000", "--cityKm=12", "--stepKm=3", "--sector=46"]
        )

        assert args.mode == "full"
        assert args.limit == 10000
        assert args.city_km == 12.0
        assert args.step_km == 3.0
        assert args.sector == "46"

    def test_rejects_bad_limit(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--limit=0"])


class TestMain:
    def test_missing_token_exits_1(self, monkeypatch, no_dotenv):
        monkeypatch.delenv("INEGI_TOKEN", raising=False)

        with patch("denueworker.harvester.run.run_harvest", new=AsyncMock()) as harvest:
            assert main([]) == 1
            harvest.assert_not_called()

    def test_success_exits_0(self, monkeypatch, no_dotenv, tmp_path):
        monkeypatch.setenv("INEGI_TOKEN", "tok")
        monkeypatch.setenv("THROTTLE_MS", "250")

        with patch(
            "denueworker.harvester.run.run_harvest",
            new=AsyncMock(return_value={"records": 0}),
        ) as harvest:
            code = main(["--mode=full", "--limit=5", "--out-dir", str(tmp_path)])

        assert code == 0
        config = harvest.call_args.args[0]
        assert config.mode == "full"
        assert config.limit == 5
        assert config.city_km == 18.0
        kwargs = harvest.call_args.kwargs
        assert kwargs["token"] == "tok"
        assert kwargs["base_delay_ms"] == 250
        assert kwargs["output_dir"] == str(tmp_path)

    def test_write_failure_exits_1(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("INEGI_TOKEN", "tok")

        with patch(
            "denueworker.harvester.run.run_harvest",
            new=AsyncMock(side_effect=PermissionError("read-only")),
        ):
            assert main([]) == 1

    def test_invalid_step_is_usage_error(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("INEGI_TOKEN", "tok")

        with pytest.raises(SystemExit) as exc:
            main(["--stepKm=0"])
        assert exc.value.code == 2

    @pytest.mark.parametrize(
        "name, value",
        [
            ("FETCH_TIMEOUT_MS", "soon"),
            ("THROTTLE_MS", "1.5s"),
            ("FETCH_TIMEOUT_MS", "0"),
            ("LOG_LEVEL", "chatty"),
        ],
    )
    def test_bad_environment_exits_1(self, monkeypatch, no_dotenv, caplog, name, value):
        monkeypatch.setenv("INEGI_TOKEN", "tok")
        monkeypatch.setenv(name, value)

        with patch("denueworker.harvester.run.run_harvest", new=AsyncMock()) as harvest:
            assert main([]) == 1
            harvest.assert_not_called()
        assert "Invalid configuration" in caplog.text


class TestLogLevel:
    @pytest.fixture
    def basic_config(self):
        with patch("denueworker.harvester.run.logging.basicConfig") as basic_config:
            yield basic_config

    def _run(self, argv):
        with patch(
            "denueworker.harvester.run.run_harvest",
            new=AsyncMock(return_value={"records": 0}),
        ):
            return main(argv)

    def test_log_level_from_environment(self, monkeypatch, no_dotenv, basic_config):
        monkeypatch.setenv("INEGI_TOKEN", "tok")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        assert self._run([]) == 0
        assert basic_config.call_args.kwargs["level"] == "WARNING"

    def test_default_level_is_info(self, monkeypatch, no_dotenv, basic_config):
        monkeypatch.setenv("INEGI_TOKEN", "tok")
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert self._run([]) == 0
        assert basic_config.call_args.kwargs["level"] == "INFO"

    def test_verbose_forces_debug(self, monkeypatch, no_dotenv, basic_config):
        monkeypatch.setenv("INEGI_TOKEN", "tok")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        assert self._run(["-v"]) == 0
        assert basic_config.call_args.kwargs["level"] == logging.DEBUG
