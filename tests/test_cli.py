"""Tests for the command-line entry point."""

import json

import pytest

from nonprofit_vetting import cli
from nonprofit_vetting.config import AppConfig, ProPublicaConfig
from nonprofit_vetting.constants import ATTRIBUTION
from nonprofit_vetting.schemas.vetting import NonprofitAddress, OrganizationProfile, RedFlagResult, ToolResponse
from nonprofit_vetting.scorers.thresholds import ThresholdValidationError, VettingThresholds


class StubService:
    """Returns canned envelopes instead of calling ProPublica."""

    def __init__(self, **kwargs):
        pass

    def get_red_flags(self, ein):
        return ToolResponse[RedFlagResult](
            success=True,
            data=RedFlagResult(ein="95-3135649", name="Test Org", flags=[], clean=True),
            attribution=ATTRIBUTION,
        )

    def check_tier1(self, ein):
        return ToolResponse(success=False, error="Organization not found with EIN: 95-3135649", attribution=ATTRIBUTION)


@pytest.fixture(autouse=True)
def stub_environment(monkeypatch):
    monkeypatch.setattr(cli, "load_config", lambda: AppConfig(ProPublicaConfig(), VettingThresholds()))
    monkeypatch.setattr(cli, "VettingService", StubService)


def test_json_envelope(capsys):
    assert cli.main(["red-flags", "953135649", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["data"]["clean"] is True
    assert payload["attribution"] == ATTRIBUTION


def test_failure_exit_code(capsys):
    assert cli.main(["tier1", "953135649"]) == 1
    assert "Organization not found" in capsys.readouterr().out


def test_sectors_json(capsys):
    assert cli.main(["sectors", "--json"]) == 0
    codes = [s["code"] for s in json.loads(capsys.readouterr().out)]
    assert codes == ["A", "E", "K"]


def test_invalid_config(monkeypatch, capsys):
    def bad_config():
        raise ThresholdValidationError(["Weights must sum to 100 (got 105)"])

    monkeypatch.setattr(cli, "load_config", bad_config)
    assert cli.main(["sectors"]) == 1
    assert "Weights must sum to 100" in capsys.readouterr().out


def test_profile_with_markup_characters(capsys):
    profile = OrganizationProfile(
        ein="95-3135649",
        name="Hope [/] Center",
        address=NonprofitAddress(city="[bold]Oakland", state="CA"),
    )
    cli.print_profile(profile)
    out = capsys.readouterr().out
    assert "Hope [/] Center" in out
    assert "[bold]Oakland, CA" in out


def test_sectors_table(capsys):
    assert cli.main(["sectors"]) == 0
    out = capsys.readouterr().out
    assert "Sector Threshold Overrides" in out
    assert "expense_ratio_pass_max" in out
