"""Desktop host: httpx for HTTP, pyperclip for the clipboard, keyring for credentials."""

import shutil
import subprocess
import sys
from typing import Any, Optional

import keyring
import pyperclip
from keyring.errors import KeyringError

from api.http_fetcher import HttpxFetcher
from utils.logger import get_logger

from .capabilities import HostError

logger = get_logger(__name__)

KEYRING_SERVICE = "deep-research"


class DesktopHost:
    """HostCapabilities implementation for macOS/Linux/Windows desktops."""

    def __init__(self, fetcher: Optional[HttpxFetcher] = None, keyring_service: str = KEYRING_SERVICE):
        self.fetcher = fetcher or HttpxFetcher()
        self.keyring_service = keyring_service

    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout_ms: int = 10000,
    ) -> Any:
        return await self.fetcher.fetch_json(url, params=params, headers=headers, timeout_ms=timeout_ms)

    def read_clipboard(self) -> str:
        try:
            content = pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise HostError(f"Failed to read clipboard content: {e}") from e
        logger.info("Read input from clipboard", extra={"extra_fields": {"length": len(content or "")}})
        return content or ""

    def write_clipboard(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise HostError(f"Failed to write to clipboard: {e}") from e
        logger.info("Wrote output to clipboard", extra={"extra_fields": {"length": len(text)}})

    def get_credential(self, name: str) -> Optional[str]:
        try:
            return keyring.get_password(self.keyring_service, name)
        except KeyringError as e:
            raise HostError(f"Credential store unavailable: {e}") from e

    def notify(self, title: str, message: str) -> None:
        """Show a desktop notification, or print it when no notifier exists."""
        command = None
        if sys.platform == "darwin" and shutil.which("osascript"):
            script = f"display notification {_applescript_quote(message)} with title {_applescript_quote(title)}"
            command = ["osascript", "-e", script]
        elif shutil.which("notify-send"):
            command = ["notify-send", title, message]

        if command is None:
            print(f"[{title}] {message}", file=sys.stderr)
            return

        try:
            subprocess.run(command, check=True, capture_output=True, timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            raise HostError(f"Failed to send notification: {e}") from e
        logger.info(f"Notification sent: {title}")


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
