"""Payloads and clients for the menu/dialog request channels.

The host process owns native dialogs and menus. This side only sends a
request over a named channel and awaits the single response correlated to
it; at most one request per channel is expected to be outstanding.

Example usage:
    dialogs = SystemDialogClient(channel)
    path = await dialogs.prompt_for_single_directory()
    if path is not None:
        await repositories.add_repository(path)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol


class IpcChannel(str, Enum):
    CONTEXT_MENU = "context-menu"
    WINDOW_MENU = "window-menu"
    SYSTEM_DIALOG = "system-dialog"


class OpenDialogPathKind(str, Enum):
    FILE = "file"
    DIRECTORY = "dir"
    ANY = "any"


class MenuItemType(str, Enum):
    NORMAL = "normal"
    CHECKBOX = "checkbox"
    SEPARATOR = "separator"
    SUBMENU = "submenu"


class RequestChannel(Protocol):
    async def request(self, channel: IpcChannel, payload: dict) -> dict:
        """Send `payload` on `channel` and return the correlated response."""
        ...


@dataclass
class ShowOpenDialogRequest:
    """Request to show a native open dialog.

    Attributes:
        path_kind: Kind of paths the user may select.
        is_owned: Whether the dialog is owned by the requesting window.
        title: Title of the dialog, e.g. "Open File".
        default_path: Path initially displayed in the dialog.
    """

    path_kind: OpenDialogPathKind
    is_owned: bool = False
    title: Optional[str] = None
    default_path: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"pathKind": self.path_kind.value, "isOwned": self.is_owned}
        if self.title is not None:
            data["title"] = self.title
        if self.default_path is not None:
            data["defaultPath"] = self.default_path
        return data


@dataclass
class ShowOpenDialogResponse:
    # empty when the dialog was cancelled
    paths: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ShowOpenDialogResponse":
        return cls(paths=list(data.get("paths") or []))


@dataclass
class MenuItem:
    id: str
    label: str = ""
    type: MenuItemType = MenuItemType.NORMAL
    checked: Optional[bool] = None
    submenu: Optional[List["MenuItem"]] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "label": self.label, "type": self.type.value}
        if self.checked is not None:
            data["checked"] = self.checked
        if self.submenu is not None:
            data["submenu"] = [item.to_dict() for item in self.submenu]
        return data


@dataclass
class ShowContextMenuRequest:
    items: List[MenuItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"items": [item.to_dict() for item in self.items]}


@dataclass
class ContextMenuAction:
    # id of the activated item
    id: str
    checked: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ContextMenuAction":
        return cls(id=data["id"], checked=bool(data.get("checked", False)))


class SystemDialogClient:
    def __init__(self, channel: RequestChannel):
        self.channel = channel

    async def show_open_dialog(self, request: ShowOpenDialogRequest) -> ShowOpenDialogResponse:
        response = await self.channel.request(IpcChannel.SYSTEM_DIALOG, request.to_dict())
        return ShowOpenDialogResponse.from_dict(response)

    async def prompt_for_single_directory(self) -> Optional[str]:
        """Let the user pick a directory.

        Returns:
            The selected directory, or None if the user cancelled.
        """
        response = await self.show_open_dialog(
            ShowOpenDialogRequest(path_kind=OpenDialogPathKind.DIRECTORY)
        )
        return response.paths[0] if response.paths else None


class ContextMenuClient:
    def __init__(self, channel: RequestChannel):
        self.channel = channel
        self._is_showing = False

    async def show(self, items: List[MenuItem]) -> ContextMenuAction:
        """Show a context menu and wait for the item the user activated."""
        if self._is_showing:
            raise RuntimeError("A context menu is already being shown")
        self._is_showing = True
        try:
            response = await self.channel.request(
                IpcChannel.CONTEXT_MENU, ShowContextMenuRequest(items).to_dict()
            )
        finally:
            self._is_showing = False
        return ContextMenuAction.from_dict(response)
