"""Tests for the root CLI app and its logging options."""

from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from spversionman import cli
from spversionman.utils.config import Config

runner = CliRunner()


@patch("spversionman.cli.setup_logging")
@patch("spversionman.cli.Config")
def test_log_level_option_is_case_insensitive(mock_config_cls, mock_setup, tmp_path):
    mock_config_cls.side_effect = lambda: Config(config_dir=tmp_path)

    result = runner.invoke(cli.app, ["--log-level", "debug", "version"])

    assert result.exit_code == 0, result.output
    assert mock_setup.call_args[0][0]["level"] == "DEBUG"


@patch("spversionman.cli.setup_logging")
def test_unknown_log_level_option_is_a_usage_error(mock_setup):
    result = runner.invoke(cli.app, ["--log-level", "verbose", "version"])

    assert result.exit_code == 2
    mock_setup.assert_not_called()


@patch("spversionman.cli.Config")
def test_unknown_log_level_in_config(mock_config_cls, tmp_path, monkeypatch):
    """A bad level in the config file is reported instead of crashing."""
    monkeypatch.delenv("SPVERSIONMAN_LOG_LEVEL", raising=False)
    (tmp_path / "config.yaml").write_text(yaml.dump({"logging": {"level": "chatty"}}))
    mock_config_cls.side_effect = lambda: Config(config_dir=tmp_path)

    result = runner.invoke(cli.app, ["version"])

    assert result.exit_code == 1
    assert "Invalid log level" in result.output


@patch("spversionman.cli.setup_logging")
@patch("spversionman.cli.Config")
def test_sites_group_through_root_app(mock_config_cls, mock_setup, tmp_path):
    mock_config_cls.side_effect = lambda: Config(config_dir=tmp_path)

    result = runner.invoke(cli.app, ["sites", "list", "--help"])

    assert result.exit_code == 0, result.output
    assert "--template" in result.output
