"""
Pytest configuration and fixtures for rping tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
sys.path.insert(0, str(Path(__file__).parent))

from rping.configuration.guild_settings import GuildSettingsManager  # noqa: E402

from fakes import ADMIN_CHANNEL_ID, GUILD_ID, ROLE_ID  # noqa: E402


@pytest.fixture
def settings_manager(tmp_path) -> GuildSettingsManager:
    manager = GuildSettingsManager(tmp_path / "settings.json")
    manager.load()
    return manager


@pytest.fixture
def configured_settings(settings_manager) -> GuildSettingsManager:
    settings_manager.set_channel(GUILD_ID, ADMIN_CHANNEL_ID)
    settings_manager.set_role(GUILD_ID, ROLE_ID)
    return settings_manager
