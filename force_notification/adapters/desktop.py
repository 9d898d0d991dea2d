"""Desktop notifier — native OS alerts through the platform's notification command.

Linux goes through notify-send, macOS through osascript and Windows through a
PowerShell toast. The launcher falls back to the console notifier when none
of these is installed. Inline data-URL icons are not forwarded; the platform
shows its own app icon.
"""

import asyncio
import platform
import shutil
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional
from xml.sax.saxutils import escape

from force_notification.config import PLUGIN_NAME
from force_notification.ports.outbound import OSNotification

SPAWN_TIMEOUT = 5.0
MAC_ALERT_SOUND = "Ping"


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


async def _spawn(*args: str) -> Any:
    return await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )


def _applescript_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def linux_command(notification: OSNotification, app_name: str = PLUGIN_NAME) -> List[str]:
    args = ["notify-send", "--app-name", app_name, "--urgency", "normal"]
    if notification.tag:
        # Servers that honour this hint replace the previous alert with the same tag
        args.append(f"--hint=string:x-canonical-private-synchronous:{notification.tag}")
    args.extend(["--", notification.title, notification.body])
    return args


def macos_command(notification: OSNotification) -> List[str]:
    script = (
        f'display notification "{_applescript_quote(notification.body)}" '
        f'with title "{_applescript_quote(notification.title)}"'
    )
    if not notification.silent:
        script += f' sound name "{MAC_ALERT_SOUND}"'
    return ["osascript", "-e", script]


def windows_command(notification: OSNotification, app_name: str = PLUGIN_NAME) -> List[str]:
    audio = '<audio silent="true"/>' if notification.silent else ""
    title = escape(notification.title.replace("\n", " "))
    body = escape(notification.body.replace("\n", " "))
    # Single-quoted here-string: PowerShell does not expand $ inside it
    script = f"""
[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
[Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null
$template = @'
<toast>
    <visual>
        <binding template="ToastGeneric">
            <text id="1">{title}</text>
            <text id="2">{body}</text>
        </binding>
    </visual>
    {audio}
</toast>
'@
$xml = New-Object Windows.Data.Xml.Dom.XmlDocument
$xml.LoadXml($template)
$toast = [Windows.UI.Notifications.ToastNotification]::new($xml)
[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{escape(app_name)}").Show($toast)
"""
    return ["powershell", "-NoProfile", "-Command", script]


@dataclass
class DesktopNotificationHandle:
    """The OS owns the alert once shown; close() only marks it handled."""

    notification: OSNotification
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class DesktopNotifier:
    """OSNotifierPort raising native alerts through a platform command."""

    def __init__(
        self,
        app_name: str = PLUGIN_NAME,
        system: Optional[str] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        spawn: Callable[..., Awaitable[Any]] = _spawn,
    ):
        self.app_name = app_name
        self.system = (system or platform.system()).lower()
        self._which = which
        self._spawn = spawn
        self._tasks: set = set()

    @property
    def available(self) -> bool:
        return self.command_for(OSNotification(title="", body="")) is not None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def command_for(self, notification: OSNotification) -> Optional[List[str]]:
        """Command line that shows the alert here, or None if this platform has no notifier."""
        if self.system == "linux":
            if self._which("notify-send"):
                return linux_command(notification, self.app_name)
        elif self.system == "darwin":
            if self._which("osascript"):
                return macos_command(notification)
        elif self.system == "windows":
            if self._which("powershell"):
                return windows_command(notification, self.app_name)
        return None

    def show(self, notification: OSNotification) -> DesktopNotificationHandle:
        handle = DesktopNotificationHandle(notification)
        args = self.command_for(notification)
        if args is None:
            _log(f"No desktop notifier on {self.system}, dropped alert: {notification.title}")
            return handle
        task = asyncio.get_running_loop().create_task(self._run(args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return handle

    async def _run(self, args: List[str]):
        try:
            proc = await self._spawn(*args)
        except OSError as e:
            _log(f"Desktop notification failed: {e}")
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=SPAWN_TIMEOUT)
        except asyncio.TimeoutError:
            _log(f"{args[0]} did not exit within {SPAWN_TIMEOUT}s")
            proc.kill()
            return
        if proc.returncode:
            _log(f"{args[0]} exited with status {proc.returncode}")

    async def close(self):
        """Wait for in-flight notifier commands."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
