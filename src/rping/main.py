"""
rping Discord Bot
=================

Discord bot that turns flag reactions into moderator alerts and lets the
pinged role resolve them with a second reaction.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. RPING_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the repository root.
    """
    if env_home := os.getenv("RPING_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from rping.configuration.app_configuration import app_config
from rping.configuration.guild_settings import GuildSettingsManager
from rping.flagging.flag_service import FlagAlertService
from rping.flagging.flag_tracker import FlagTracker
from rping.util.logger import get_logger, handle_exception


logger = get_logger("main")

TOKEN_ENV_VAR = "DISCORD_TOKEN"


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv(TOKEN_ENV_VAR)
    if not token:
        logger.critical("'%s' environment variable not set. Bot cannot start.", TOKEN_ENV_VAR)
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents needed to see reactions, messages and members."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.reactions = True
    intents.members = True
    return intents


def build_settings_manager() -> GuildSettingsManager:
    """Load the per-guild settings file. A corrupt file raises."""
    manager = GuildSettingsManager(app_config.settings_file)
    manager.load()
    return manager


def build_flag_service(settings_manager: GuildSettingsManager) -> FlagAlertService:
    return FlagAlertService(
        settings_manager,
        FlagTracker(),
        flag_emoji=app_config.flag_emoji,
        resolve_emoji=app_config.resolve_emoji,
        preview_length=app_config.alert_preview_length,
    )


def load_cogs(
    discord_bot_instance: discord.Bot,
    settings_manager: GuildSettingsManager,
    flag_service: FlagAlertService,
) -> None:
    """Register all cogs with the bot, handing each the services it needs."""
    from rping.bot.cogs import alert_settings_cmds, events_listener, reaction_listener

    events_listener.setup(discord_bot_instance)
    reaction_listener.setup(discord_bot_instance, flag_service)
    alert_settings_cmds.setup(discord_bot_instance, settings_manager)

    logger.info("All cogs loaded successfully.")


def create_bot(settings_manager: GuildSettingsManager, flag_service: FlagAlertService) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs.

    Global command sync is disabled; commands are registered per guild by the
    events listener.
    """
    bot = discord.Bot(intents=build_intents(), auto_sync_commands=False)
    load_cogs(bot, settings_manager, flag_service)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the Discord connection if it is still open.

    Open flags are held in memory only and are dropped here.
    """
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)
    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap settings, services and the bot, returning an exit code."""
    token = load_environment()

    try:
        logger.info("Loading alert settings from %s", app_config.settings_file)
        settings_manager = build_settings_manager()
    except Exception as exc:
        logger.critical("Failed to load alert settings: %s", exc)
        return 1

    flag_service = build_flag_service(settings_manager)

    try:
        bot = create_bot(settings_manager, flag_service)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    logger.info("Starting rping…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
