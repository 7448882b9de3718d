"""Tests for the JSON-backed guild settings store."""

import json

import pytest

from rping.configuration.guild_settings import GuildSettings, GuildSettingsManager


def test_load_missing_file_returns_empty(tmp_path):
    manager = GuildSettingsManager(tmp_path / "settings.json")

    assert manager.load() == {}
    assert manager.get(1) is None
    assert not (tmp_path / "settings.json").exists()


def test_load_corrupt_file_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(json.JSONDecodeError):
        GuildSettingsManager(path).load()


def test_load_non_object_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        GuildSettingsManager(path).load()


def test_set_channel_and_role_persist_in_legacy_format(tmp_path):
    path = tmp_path / "settings.json"
    manager = GuildSettingsManager(path)
    manager.load()

    manager.set_channel(111, 222)
    manager.set_role(111, 333)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk == {"111": {"admin_channel_id": "222", "role_id_to_ping": "333"}}
    assert not path.with_name("settings.json.tmp").exists()


def test_round_trip_through_new_manager(tmp_path):
    path = tmp_path / "settings.json"
    first = GuildSettingsManager(path)
    first.load()
    first.set_channel(111, 222)
    first.set_role(111, 333)

    second = GuildSettingsManager(path)
    second.load()
    settings = second.get(111)

    assert settings is not None
    assert settings.admin_channel_id == 222
    assert settings.role_id_to_ping == 333
    assert settings.is_complete


def test_reads_numeric_ids_and_keeps_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"5": {"admin_channel_id": 6, "note": "keep me"}}),
        encoding="utf-8",
    )
    manager = GuildSettingsManager(path)
    manager.load()

    settings = manager.get("5")
    assert settings is not None
    assert settings.admin_channel_id == 6
    assert settings.role_id_to_ping is None
    assert not settings.is_complete

    manager.set_role(5, 7)
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["5"] == {"note": "keep me", "admin_channel_id": "6", "role_id_to_ping": "7"}


def test_set_channel_overwrites_previous_value(settings_manager):
    settings_manager.set_channel(1, 2)
    settings_manager.set_channel(1, 3)

    assert settings_manager.get(1).admin_channel_id == 3
    assert settings_manager.list_guild_ids() == [1]


def test_guild_settings_to_dict_omits_unset_fields():
    assert GuildSettings.from_dict("9", {}).to_dict() == {}
