"""Launcher — wires a NotificationSession to the Discord host and runs it."""

import asyncio
import sys
from typing import Optional

from force_notification.adapters.console import ConsoleNotifier, ConsoleStatus, ConsoleToastRenderer
from force_notification.adapters.desktop import DesktopNotifier
from force_notification.adapters.discord.host import DiscordHost
from force_notification.adapters.storage.json_store import JsonStorage
from force_notification.config import PLUGIN_NAME, AppConfig, __version__
from force_notification.discovery import discover_collaborators
from force_notification.session import NotificationSession


def _log(msg: str):
    print(f"[{PLUGIN_NAME}] {msg}", file=sys.stderr)


def default_notifier():
    """Native desktop alerts where the platform has a notifier, stderr otherwise."""
    desktop = DesktopNotifier()
    if desktop.available:
        return desktop
    _log(f"No desktop notifier on {desktop.system}, OS alerts go to stderr")
    return ConsoleNotifier()


def build_session(host: DiscordHost, config: AppConfig) -> NotificationSession:
    """Discover the host's collaborators and build a session with console toasts and status."""
    return NotificationSession(
        collaborators=discover_collaborators(host.registry()),
        storage=JsonStorage(config.storage_dir, namespace=PLUGIN_NAME),
        status=ConsoleStatus(),
        toast_renderer=ConsoleToastRenderer(),
        notifier=default_notifier(),
        config=config,
    )


async def run(config: Optional[AppConfig] = None):
    config = config or AppConfig.from_env()
    if not config.discord_token:
        _log("DISCORD_BOT_TOKEN not set. Nothing to listen to.")
        return

    _log(f"Starting v{__version__}")
    host = DiscordHost(config.discord_token)
    session = build_session(host, config)
    await session.start()
    try:
        await host.run_host()
    except Exception as e:
        _log(f"Discord host crashed: {e}")
    finally:
        await session.stop()
        if not host.is_closed():
            await host.close()


def main():
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        _log("Interrupted")


if __name__ == "__main__":
    main()
