"""
Room Sync Application UI

Terminal user interface for one participant, built using the Textual
framework. All session state shown here comes from the participant's
replica, which is fed by the event bus.
"""

import logging
import os
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import (
    Container,
    Horizontal,
    Vertical,
    ScrollableContainer,
)
from textual.css.query import NoMatches
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from room import (
    AdmissionError,
    JsonFileStorage,
    Message,
    MessageKind,
    Session,
    SessionStore,
    User,
    WebSocketBus,
)
from room.device import UNKNOWN_ADDRESS

from ..participant import EXIT_ENDED, EXIT_KICKED, Participant
from ..validation import DEFAULT_MAX_USERS, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "ws://127.0.0.1:8765"
DEFAULT_DATA_DIR = "~/.room_sync"
DEFAULT_PROFILE = "default"


def format_size(byte_size: int) -> str:
    return f"{byte_size / 1024:.1f} KB"


def session_header(session: Session, is_host: bool) -> str:
    """Header markup; only the host sees the PIN."""
    header = f"[bold]Room {session.id}[/]"
    if session.config.enable_2fa:
        if is_host:
            header += f" [yellow]PIN: {session.config.pin}[/]"
        else:
            header += " [yellow](PIN protected)[/]"
    return header


def participant_row(user: User, own_id: Optional[str], is_host: bool):
    """
    Cells for one participant table row.

    Addresses are shown to the host only.
    """
    name = user.display_name
    if user.id == own_id:
        name = f"{name} (you)"
    address = (user.network_address or UNKNOWN_ADDRESS) if is_host else "-"
    return name, user.role.value, user.device_info, address


class MessageDisplay(Static):
    """Widget for displaying a single chat message."""

    def __init__(self, message: Message, is_own_message: bool = False) -> None:
        """Initialize message display."""
        super().__init__()
        self.message = message
        self.is_own_message = is_own_message

    def compose(self) -> ComposeResult:
        """Compose the message display."""
        timestamp = self.message.timestamp
        time_part = timestamp.split("T")[1][:8] if "T" in timestamp else ""
        prefix = "You" if self.is_own_message else self.message.sender_name
        body = self.message.content
        attachment = self.message.file_attachment
        if self.message.kind == MessageKind.FILE and attachment is not None:
            body = (
                f"{body}\n[dim]{attachment.mime_type or 'file'}, "
                f"{format_size(attachment.byte_size)}[/]"
            )
        yield Static(
            f"[bold cyan]{prefix}[/] [dim]{time_part}[/]\n{body}",
            classes="message-content",
        )


class SystemMessage(Static):
    """Widget for displaying system messages and notifications."""

    def __init__(self, message: str, message_type: str = "info") -> None:
        """Initialize system message display."""
        self.message = message
        self.message_type = message_type
        super().__init__()

    def compose(self) -> ComposeResult:
        """Compose the system message."""
        color = {
            "info": "blue",
            "warning": "yellow",
            "error": "red",
            "success": "green",
        }.get(self.message_type, "white")
        yield Static(f"[{color}]{self.message}[/]", classes="system-message")


class LandingScreen(Container):
    """Screen for creating or joining a session."""

    def compose(self) -> ComposeResult:
        """Compose the landing screen."""
        yield Static(
            "[bold blue]Room Sync[/]",
            id="title",
            classes="screen-title",
        )
        with Horizontal(id="landing-forms"):
            with Vertical(id="create-form", classes="landing-form"):
                yield Static("[bold]Create Session[/]")
                yield Label("Your name:")
                yield Input(placeholder="e.g. alice", id="create-name-input")
                yield Label("Max users (2-20):")
                yield Input(
                    value=str(DEFAULT_MAX_USERS),
                    id="max-users-input",
                )
                yield Checkbox("Require 8-digit PIN", id="enable-pin-checkbox")
                yield Input(
                    placeholder="PIN", password=True, id="create-pin-input"
                )
                yield Button("Create", id="create-btn", variant="primary")
            with Vertical(id="join-form", classes="landing-form"):
                yield Static("[bold]Join Session[/]")
                yield Label("Your name:")
                yield Input(placeholder="e.g. bob", id="join-name-input")
                yield Label("Room code:")
                yield Input(placeholder="10-digit code", id="room-code-input")
                yield Label("PIN (if required):")
                yield Input(
                    placeholder="PIN", password=True, id="join-pin-input"
                )
                yield Button("Join", id="join-btn", variant="success")
        yield Static("", id="landing-status", classes="status-message")


class SessionScreen(Container):
    """Screen for chatting in a session."""

    def compose(self) -> ComposeResult:
        """Compose the session screen."""
        with Horizontal(id="session-container"):
            with Vertical(id="chat-main"):
                yield Static("", id="session-header", classes="session-header")
                yield ScrollableContainer(id="messages-container")
                with Horizontal(id="message-input-row"):
                    yield Input(
                        placeholder=(
                            "Type a message... (/date, /myip, /mydevice)"
                        ),
                        id="message-input",
                    )
                    yield Button("Send", id="send-btn", variant="primary")
                with Horizontal(id="file-input-row"):
                    yield Input(
                        placeholder="Path of a file to share...",
                        id="file-input",
                    )
                    yield Button("Share", id="share-btn", variant="default")
            with Vertical(id="sidebar"):
                yield Static(
                    "", id="participants-header", classes="sidebar-header"
                )
                yield DataTable(id="participant-table")
                yield Button(
                    "Kick Selected",
                    id="kick-btn",
                    variant="warning",
                    classes="host-only",
                )
                yield Button(
                    "End Session",
                    id="end-session-btn",
                    variant="error",
                    classes="host-only",
                )
                yield Button("Leave", id="leave-btn", variant="default")


class RoomSyncApp(App):
    """Main room sync application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    .screen-title {
        text-align: center;
        padding: 1 0;
        text-style: bold;
    }

    #landing-forms {
        height: auto;
        align: center top;
    }

    .landing-form {
        width: 45;
        height: auto;
        padding: 1;
        margin: 0 1;
        border: solid $primary;
    }

    .landing-form Input {
        margin: 0 0 1 0;
    }

    .landing-form Button {
        width: 100%;
    }

    .status-message {
        text-align: center;
        padding: 1;
    }

    SessionScreen {
        height: 100%;
    }

    #session-container {
        height: 100%;
    }

    #chat-main {
        width: 3fr;
    }

    #sidebar {
        width: 1fr;
        border-left: solid $primary;
        padding: 0 1;
    }

    .sidebar-header {
        padding: 1 0;
        text-align: center;
    }

    #participant-table {
        height: 1fr;
    }

    #sidebar Button {
        margin: 1 0 0 0;
        width: 100%;
    }

    .session-header {
        padding: 1;
        background: $surface;
        text-align: center;
    }

    #messages-container {
        height: 1fr;
        padding: 1;
    }

    #message-input-row, #file-input-row {
        height: 3;
        padding: 0 1;
    }

    #message-input, #file-input {
        width: 1fr;
    }

    #send-btn, #share-btn {
        margin: 0 0 0 1;
    }

    MessageDisplay {
        padding: 0 0 1 0;
    }

    .message-content {
        padding: 0 1;
    }

    SystemMessage {
        padding: 0 0 1 0;
    }

    .system-message {
        text-align: center;
        text-style: italic;
    }

    .hidden {
        display: none;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        relay_url: str = DEFAULT_RELAY_URL,
        data_dir: str = DEFAULT_DATA_DIR,
        participant: Optional[Participant] = None,
        profile: str = DEFAULT_PROFILE,
    ) -> None:
        """
        Initialize the application.

        Args:
            relay_url: WebSocket URL of the relay server
            data_dir: Directory for the session store
            participant: Optional pre-built participant (for testing)
            profile: Name of this client's own user record; clients
                     sharing data_dir need distinct profiles
        """
        super().__init__()
        self.relay_url = relay_url
        self.data_dir = data_dir
        self.profile = profile
        self.bus: Optional[WebSocketBus] = None
        self.participant = participant
        self._current_screen = "landing"

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()
        yield LandingScreen(id="landing-screen")
        yield SessionScreen(id="session-screen")
        yield Footer()

    async def on_mount(self) -> None:
        """Connect to the relay and resume a stored session."""
        self._show_screen("landing")
        table = self.query_one("#participant-table", DataTable)
        table.add_columns("Name", "Role", "Device", "Address")
        table.cursor_type = "row"

        if self.participant is None:
            self.bus = WebSocketBus(self.relay_url)
            store = SessionStore(
                JsonFileStorage(self.data_dir),
                JsonFileStorage(
                    os.path.join(self.data_dir, "profiles", self.profile)
                ),
            )
            self.participant = Participant(self.bus, store)
            try:
                await self.bus.connect()
            except ConnectionError as e:
                self._set_landing_status(
                    f"[yellow]Relay unavailable, running locally: {e}[/]"
                )

        self.participant.set_on_session_synced(self._on_session_synced)
        self.participant.set_on_message(self._on_message)
        self.participant.set_on_exit(self._on_exit)

        if self.participant.resume():
            self._enter_session()

    async def on_unmount(self) -> None:
        if self.bus is not None:
            await self.bus.disconnect()

    def _show_screen(self, screen_name: str) -> None:
        """Show a specific screen and hide others."""
        screens = {
            "landing": "landing-screen",
            "session": "session-screen",
        }

        for name, screen_id in screens.items():
            try:
                screen = self.query_one(f"#{screen_id}")
                screen.display = name == screen_name
            except NoMatches:
                pass

        self._current_screen = screen_name

    def _set_landing_status(self, text: str) -> None:
        try:
            self.query_one("#landing-status", Static).update(text)
        except NoMatches:
            pass

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        button_id = event.button.id

        if button_id == "create-btn":
            self._handle_create()
        elif button_id == "join-btn":
            self._handle_join()
        elif button_id == "send-btn":
            self._handle_send_message()
        elif button_id == "share-btn":
            self._handle_share_file()
        elif button_id == "kick-btn":
            self._handle_kick()
        elif button_id == "end-session-btn":
            self._handle_end_session()
        elif button_id == "leave-btn":
            self.participant.leave()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle input submit events (Enter key)."""
        input_id = event.input.id

        if input_id == "message-input":
            self._handle_send_message()
        elif input_id == "file-input":
            self._handle_share_file()
        elif input_id in (
            "create-name-input",
            "max-users-input",
            "create-pin-input",
        ):
            self._handle_create()
        elif input_id in (
            "join-name-input",
            "room-code-input",
            "join-pin-input",
        ):
            self._handle_join()

    def _handle_create(self) -> None:
        name = self.query_one("#create-name-input", Input).value.strip()
        max_users_input = self.query_one("#max-users-input", Input)
        max_users_text = max_users_input.value.strip()
        enable_2fa = self.query_one("#enable-pin-checkbox", Checkbox).value
        pin = self.query_one("#create-pin-input", Input).value.strip()

        try:
            max_users = int(max_users_text)
        except ValueError:
            self._set_landing_status("[red]Max users must be a number[/]")
            return

        try:
            self.participant.create_session(
                name, max_users, enable_2fa, pin or None
            )
        except ValidationError as e:
            self._set_landing_status(f"[red]{e}[/]")
            return

        self._enter_session()

    def _handle_join(self) -> None:
        name = self.query_one("#join-name-input", Input).value.strip()
        code = self.query_one("#room-code-input", Input).value.strip()
        pin = self.query_one("#join-pin-input", Input).value.strip()

        try:
            self.participant.join_session(code, name, pin or None)
        except (ValidationError, AdmissionError) as e:
            logger.warning(f"Join failed: {e}")
            self._set_landing_status(f"[red]{e}[/]")
            return

        self._enter_session()

    def _enter_session(self) -> None:
        self._set_landing_status("")
        for button in self.query(".host-only"):
            button.display = self.participant.is_host
        try:
            self.query_one("#messages-container").remove_children()
        except NoMatches:
            pass
        self._show_screen("session")
        if self.participant.session is not None:
            self._on_session_synced(self.participant.session)
        self._add_system_message(
            f"Joined as {self.participant.user.display_name}", "success"
        )

    def _handle_send_message(self) -> None:
        message_input = self.query_one("#message-input", Input)
        text = message_input.value
        if not text.strip():
            return
        try:
            self.participant.send_text(text)
        except ValidationError as e:
            self._add_system_message(str(e), "error")
            return
        message_input.value = ""

    def _handle_share_file(self) -> None:
        file_input = self.query_one("#file-input", Input)
        path = file_input.value.strip()
        if not path:
            return
        try:
            self.participant.send_file(path)
        except OSError as e:
            self._add_system_message(f"Could not read file: {e}", "error")
            return
        file_input.value = ""

    def _handle_kick(self) -> None:
        table = self.query_one("#participant-table", DataTable)
        if table.row_count == 0:
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        try:
            self.participant.kick(str(row_key.value))
        except (PermissionError, ValidationError) as e:
            self._add_system_message(str(e), "warning")

    def _handle_end_session(self) -> None:
        try:
            self.participant.end_session()
        except PermissionError as e:
            self._add_system_message(str(e), "warning")

    # ----- participant callbacks -----

    def _on_session_synced(self, session: Session) -> None:
        try:
            header = self.query_one("#session-header", Static)
            participants_header = self.query_one(
                "#participants-header", Static
            )
            table = self.query_one("#participant-table", DataTable)
        except NoMatches:
            return

        header.update(session_header(session, self.participant.is_host))
        participants_header.update(
            f"[bold]Participants ({session.member_count}/"
            f"{session.config.max_users})[/]"
        )

        table.clear()
        own_id = self.participant.user.id if self.participant.user else None
        is_host = self.participant.is_host
        for user in session.users:
            table.add_row(
                *participant_row(user, own_id, is_host), key=user.id
            )

    def _on_message(self, message: Message) -> None:
        try:
            messages = self.query_one("#messages-container")
        except NoMatches:
            return
        user = self.participant.user
        is_own = user is not None and message.sender_id == user.id
        messages.mount(MessageDisplay(message, is_own))
        messages.scroll_end()

    def _on_exit(self, reason: str) -> None:
        if reason == EXIT_KICKED:
            text = "[red]You have been kicked from the session.[/]"
        elif reason == EXIT_ENDED:
            text = "[yellow]The host has ended the session.[/]"
        else:
            text = "[blue]You left the session.[/]"
        self._show_screen("landing")
        self._set_landing_status(text)

    def _add_system_message(
        self, message: str, message_type: str = "info"
    ) -> None:
        try:
            messages = self.query_one("#messages-container")
        except NoMatches:
            return
        messages.mount(SystemMessage(message, message_type))
        messages.scroll_end()
