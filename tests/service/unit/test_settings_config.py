import pytest

from tab_hoarder.config import DEFAULT_SETTINGS, MAX_ARCHIVE_DAYS, Settings, _env_int, load_settings, merge_settings
from tab_hoarder.errors import ValidationError
from tab_hoarder.tab_policy.taxonomy import TOPIC_ORDER


def test_defaults_match_the_settings_dataclass():
    assert load_settings(None) == Settings()
    assert load_settings({}).to_dict() == DEFAULT_SETTINGS


def test_merge_settings_layers_stored_then_override():
    merged = merge_settings({"maxOpenTabs": 10, "autoArchiveDays": 3}, {"maxOpenTabs": 20})
    assert merged["maxOpenTabs"] == 20
    assert merged["autoArchiveDays"] == 3
    assert merged["notificationsEnabled"] is True
    assert DEFAULT_SETTINGS["maxOpenTabs"] == 50


def test_load_settings_coerces_loose_values():
    settings = load_settings(
        {
            "autoArchiveEnabled": "no",
            "autoArchiveDays": "14",
            "archiveOnStartup": 1,
            "maxOpenTabs": "0",
            "archiveExcludedDomains": "Mail.Google.com\n  intranet.local \n\nmail.google.com",
        }
    )
    assert settings.auto_archive_enabled is False
    assert settings.auto_archive_days == 14
    assert settings.archive_on_startup is True
    assert settings.max_open_tabs == 0
    assert settings.excluded_domains == ("mail.google.com", "intranet.local")


def test_load_settings_clamps_ranges():
    assert load_settings({"autoArchiveDays": 0}).auto_archive_days == 1
    assert load_settings({"autoArchiveDays": 9999}).auto_archive_days == MAX_ARCHIVE_DAYS
    assert load_settings({"maxOpenTabs": -5}).max_open_tabs == 0


@pytest.mark.parametrize(
    "raw",
    [
        {"autoArchiveDays": "soon"},
        {"maxOpenTabs": True},
        {"archiveExcludedDomains": 42},
    ],
)
def test_load_settings_rejects_malformed_values(raw):
    with pytest.raises(ValidationError):
        load_settings(raw)


def test_load_settings_rejects_non_object():
    with pytest.raises(ValidationError):
        load_settings(["maxOpenTabs", 5])


def test_categories_are_normalized_and_deduplicated():
    settings = load_settings({"categories": ["Research", " work ", "", "research"]})
    assert settings.categories == ("research", "work")
    assert load_settings({"categories": None}).categories == ()
    assert load_settings({}).categories == TOPIC_ORDER


def test_unknown_keys_are_ignored():
    assert load_settings({"theme": "dark"}) == Settings()


@pytest.mark.parametrize(
    "raw, expected",
    [("30", 30), (" 7 ", 7), ("", 90), ("ninety", 90), ("-3", 90)],
)
def test_env_int_falls_back_on_unusable_values(monkeypatch, raw, expected):
    monkeypatch.setenv("TAB_HOARDER_RETENTION_DAYS", raw)
    assert _env_int("TAB_HOARDER_RETENTION_DAYS", 90) == expected


def test_env_int_uses_default_when_unset(monkeypatch):
    monkeypatch.delenv("TAB_HOARDER_RETENTION_DAYS", raising=False)
    assert _env_int("TAB_HOARDER_RETENTION_DAYS", 90) == 90
