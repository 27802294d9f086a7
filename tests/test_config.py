"""
Tests for settings parsing.
"""
import pytest

from ufwprofile.core.config import Settings


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("A_,B_", ["A_", "B_"]),
        (" A_ , ,B_ ", ["A_", "B_"]),
        ('["A_"]', ["A_"]),
        ("", []),
        (["A_", "B_"], ["A_", "B_"]),
    ],
)
def test_escalation_env_prefixes_parsing(raw, expected):
    settings = Settings(_env_file=None, ESCALATION_ENV_PREFIXES=raw)
    assert settings.ESCALATION_ENV_PREFIXES == expected


def test_escalation_env_prefixes_default_is_empty(monkeypatch):
    monkeypatch.delenv("ESCALATION_ENV_PREFIXES", raising=False)
    assert Settings(_env_file=None).ESCALATION_ENV_PREFIXES == []


def test_escalation_env_prefixes_from_environment(monkeypatch):
    monkeypatch.setenv("ESCALATION_ENV_PREFIXES", "APP_,DB_")
    assert Settings(_env_file=None).ESCALATION_ENV_PREFIXES == ["APP_", "DB_"]


def test_auth_enabled_only_with_non_blank_key():
    assert Settings(_env_file=None, API_KEY=None).is_auth_enabled() is False
    assert Settings(_env_file=None, API_KEY="  ").is_auth_enabled() is False
    assert Settings(_env_file=None, API_KEY="secret").is_auth_enabled() is True
