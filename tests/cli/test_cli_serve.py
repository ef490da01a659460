"""Tests for ``fmcp`` / ``fmcp serve``."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from fmcp.cli import main

CLEAN_ENV = {"API_KEY": "", "API_URL": "", "AUTO_UPDATE": "false", "OTEL_EXPORTER_OTLP_ENDPOINT": ""}


def _runner_cls() -> MagicMock:
    runner_cls = MagicMock()
    runner_cls.return_value.run = AsyncMock()
    return runner_cls


class TestServe:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "2.0.0" in result.output

    def test_missing_api_key_exits_1(self) -> None:
        runner_cls = _runner_cls()
        with (
            patch("fmcp.cli_commands.serve.configure_logging"),
            patch("fmcp.runner.ServerRunner", runner_cls),
        ):
            result = CliRunner().invoke(main, [], env=CLEAN_ENV)
        assert result.exit_code == 1
        assert "API key is required" in result.output
        runner_cls.assert_not_called()

    def test_default_command_serves(self) -> None:
        runner_cls = _runner_cls()
        with (
            patch("fmcp.cli_commands.serve.configure_logging") as logging_setup,
            patch("fmcp.runner.ServerRunner", runner_cls),
        ):
            result = CliRunner().invoke(
                main,
                ["--api-key=abc", "--api-url=https://api.example.com", "--stdio", "--log-level=debug"],
                env=CLEAN_ENV,
            )
        assert result.exit_code == 0, result.output
        config = runner_cls.call_args.args[0]
        assert config.api_key == "abc"
        assert config.api_url == "https://api.example.com"
        runner_cls.return_value.run.assert_awaited_once()
        logging_setup.assert_called_once_with("DEBUG")

    def test_serve_subcommand_reads_group_options(self) -> None:
        runner_cls = _runner_cls()
        with (
            patch("fmcp.cli_commands.serve.configure_logging"),
            patch("fmcp.runner.ServerRunner", runner_cls),
        ):
            result = CliRunner().invoke(main, ["--api-key", "k", "--api-version", "v2", "serve"], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        assert runner_cls.call_args.args[0].api_version == "v2"

    def test_flag_overrides_env(self) -> None:
        runner_cls = _runner_cls()
        with (
            patch("fmcp.cli_commands.serve.configure_logging"),
            patch("fmcp.runner.ServerRunner", runner_cls),
        ):
            result = CliRunner().invoke(main, ["--api-key=flag"], env={**CLEAN_ENV, "API_KEY": "env"})
        assert result.exit_code == 0, result.output
        assert runner_cls.call_args.args[0].api_key == "flag"
