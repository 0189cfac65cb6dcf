"""The narrow interface the research core needs from its host platform."""

from typing import Any, Optional, Protocol


class HostError(Exception):
    """A host capability (clipboard, notification, credential store) failed."""


class HostCapabilities(Protocol):
    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout_ms: int = 10000,
    ) -> Any: ...

    def read_clipboard(self) -> str: ...

    def write_clipboard(self, text: str) -> None: ...

    def notify(self, title: str, message: str) -> None: ...

    def get_credential(self, name: str) -> Optional[str]: ...
