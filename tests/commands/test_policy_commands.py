"""Tests for the policy commands."""

import json
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from spversionman.commands import policy

runner = CliRunner()

SITE_A = "https://contoso.sharepoint.com/sites/a"
SITE_B = "https://contoso.sharepoint.com/sites/b"
SITE_C = "https://contoso.sharepoint.com/sites/c"


@patch("spversionman.commands.policy.build_run_context")
def test_set_custom_policy(mock_build, run_context, fake_api):
    """Custom limits are applied to every site in order."""
    mock_build.return_value = run_context

    result = runner.invoke(
        policy.app,
        [
            "set",
            "--source",
            "custom",
            "--major-version-limit",
            "300",
            "--expire-after-days",
            "90",
            "-s",
            SITE_A,
            "-s",
            SITE_B,
            "--force",
            "--no-progress",
        ],
    )

    assert result.exit_code == 0, result.output
    posts = fake_api.calls_for("POST", "/sites/policy")
    assert [call[2] for call in posts] == [SITE_A, SITE_B]
    assert posts[0][3] == {
        "enableAutoExpirationVersionTrim": False,
        "majorVersionLimit": 300,
        "expireVersionsAfterDays": 90,
    }


@patch("spversionman.commands.policy.build_run_context")
def test_set_rejects_low_limit_before_touching_sites(mock_build, run_context, fake_api):
    mock_build.return_value = run_context

    result = runner.invoke(
        policy.app,
        ["set", "--source", "custom", "--major-version-limit", "99", "-s", SITE_A, "--force"],
    )

    assert result.exit_code == 1
    assert "major_version_limit must be at least 100" in result.output
    assert fake_api.calls == []


@patch("spversionman.commands.policy.build_run_context")
def test_set_from_tenant_defaults(mock_build, run_context, fake_api):
    """The tenant's limits are read once and applied to each site."""
    mock_build.return_value = run_context

    result = runner.invoke(
        policy.app,
        ["set", "--source", "tenant", "-s", SITE_A, "-s", SITE_B, "--force", "--no-progress"],
    )

    assert result.exit_code == 0, result.output
    assert len(fake_api.calls_for("GET", "/tenant/policy")) == 1
    assert [call[3]["majorVersionLimit"] for call in fake_api.calls_for("POST", "/sites/policy")] == [
        500,
        500,
    ]


@patch("spversionman.commands.policy.build_run_context")
def test_set_continues_after_site_failure(mock_build, run_context, fake_api):
    """One failing site is reported and the run exits with the batch failure code."""
    mock_build.return_value = run_context
    fake_api.responses[("POST", "/sites/policy", SITE_B)] = httpx.Response(
        423, json={"error": {"code": "SiteLocked", "message": "Site is locked"}}
    )

    result = runner.invoke(
        policy.app,
        [
            "set",
            "--source",
            "automatic",
            "-s",
            SITE_A,
            "-s",
            SITE_B,
            "-s",
            SITE_C,
            "--force",
            "--no-progress",
        ],
    )

    assert result.exit_code == 2
    assert [call[2] for call in fake_api.calls_for("POST", "/sites/policy")] == [
        SITE_A,
        SITE_B,
        SITE_C,
    ]


@patch("spversionman.commands.policy.build_run_context")
def test_set_requires_confirmation(mock_build, run_context, fake_api):
    mock_build.return_value = run_context

    result = runner.invoke(
        policy.app, ["set", "--source", "automatic", "-s", SITE_A], input="n\n"
    )

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert fake_api.calls_for("POST", "/sites/policy") == []


@patch("spversionman.commands.policy.build_run_context")
def test_site_source_is_required(mock_build, run_context):
    mock_build.return_value = run_context

    result = runner.invoke(policy.app, ["get", "--no-progress"])

    assert result.exit_code == 1
    assert "exactly one of" in result.output


@patch("spversionman.commands.policy.build_run_context")
def test_get_policy_with_report(mock_build, run_context, tmp_path):
    mock_build.return_value = run_context
    output = tmp_path / "policies.csv"

    result = runner.invoke(
        policy.app, ["get", "-s", SITE_A, "--no-progress", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert "Automatic" in output.read_text()


@patch("spversionman.commands.policy.build_run_context")
def test_status(mock_build, run_context, fake_api, tmp_path):
    mock_build.return_value = run_context
    fake_api.responses[("GET", "/sites/policy/progress", SITE_A)] = httpx.Response(
        200, json={"status": "InProgress"}
    )

    output = tmp_path / "status.json"

    result = runner.invoke(
        policy.app, ["status", "-s", SITE_A, "--no-progress", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(output.read_text())["results"][0]["payload"]
    assert payload["state"] == "processing"
    assert payload["kind"] == "policy_application"
