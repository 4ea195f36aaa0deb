import logging
from typing import List, Optional

from rich.markup import escape
from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, RichLog, Static
from textual.worker import get_current_worker

from etchosts.access import AuthorizationError, HostsError, make_writer
from etchosts.config import DEFAULT_CONFIG
from etchosts.model import HostEntry, HostsManager

logger = logging.getLogger(__name__)

AUTH_MESSAGE = (
    "This app requires administrator privileges to modify the hosts file. "
    "Grant the permission when prompted, or run the app as root with the 'direct' writer."
)


class DiffScreen(ModalScreen):
    """A screen that displays the diff a toggle would apply."""
    def __init__(self, diff_content: str, hosts_path: str):
        super().__init__()
        self.diff_content = diff_content
        self.hosts_path = hosts_path

    def compose(self) -> ComposeResult:
        with ScrollableContainer(id="diff_container", classes="box"):
            yield Label(f"Proposed Changes ({escape(self.hosts_path)} diff):", classes="stats")
            yield RichLog(id="diff_text", highlight=False, markup=False, wrap=False)
            with Horizontal():
                yield Button("Close", variant="primary", id="close_diff")

    def on_mount(self):
        log = self.query_one("#diff_text", RichLog)
        for line in self.diff_content.splitlines():
            if line.startswith("+") and not line.startswith("+++"):
                log.write(Text(line, style="green"))
            elif line.startswith("-") and not line.startswith("---"):
                log.write(Text(line, style="red"))
            else:
                log.write(Text(line))

    def on_button_pressed(self, event: Button.Pressed):
        if event.button.id == "close_diff":
            self.app.pop_screen()


class MessageScreen(ModalScreen):
    """An alert with a title, a message and an OK button."""
    def __init__(self, title: str, message: str):
        super().__init__()
        self.title_text = title
        self.message_text = message

    def compose(self) -> ComposeResult:
        with Vertical(id="message_box", classes="box"):
            yield Label(Text(self.title_text, style="bold"), id="message_title")
            yield Static(Text(self.message_text), id="message_body")
            yield Button("OK", variant="primary", id="message_ok")

    def on_button_pressed(self, event: Button.Pressed):
        if event.button.id == "message_ok":
            self.app.pop_screen()


class HostEntryItem(ListItem):
    def __init__(self, entry: HostEntry):
        super().__init__()
        self.entry = entry

    def compose(self) -> ComposeResult:
        style = "" if self.entry.is_enabled else "strike dim"
        yield Label(Text(self.entry.label, style=f"bold {style}".strip()))
        yield Label(Text(self.entry.ip, style=f"italic {style}".strip()), classes="ip")


class EtcHostsApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }

    .box {
        height: auto;
        border: solid green;
        margin: 1;
        padding: 1;
    }

    .stats {
         width: 100%;
         height: auto;
         content-align: center middle;
         background: $boost;
         margin: 1;
    }

    #entries {
        height: 2fr;
        border: tall $primary;
    }

    .ip {
        color: $text-muted;
    }

    MessageScreen, DiffScreen {
        align: center middle;
    }

    #message_box {
        width: 60;
        background: $surface;
    }

    #message_box Button {
        margin-top: 1;
        width: 100%;
    }

    #diff_text {
        background: $surface;
        color: $text;
        padding: 1;
        height: 1fr;
        min-height: 10;
    }

    #log_window {
        height: 1fr;
        min-height: 6;
        border: tall $primary;
        background: $surface;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "reload", "Reload"),
        ("p", "preview", "Preview"),
    ]

    TITLE = "Hosts File Entries"

    def __init__(self, manager: Optional[HostsManager] = None):
        super().__init__()
        self.manager = manager or HostsManager(writer=make_writer(DEFAULT_CONFIG))
        self.toggle_in_flight = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

        with Vertical():
            yield Static("Loading...", id="system_stats", classes="stats")
            yield ListView(id="entries")
            yield RichLog(id="log_window", highlight=True, markup=True)

    def on_mount(self):
        self.log_line(f"Reading {escape(self.manager.hosts_path)}...")
        self.load_entries()

    def log_line(self, message: str):
        log = self.query_one("#log_window", RichLog)
        log.write(message)
        log.scroll_end()

    def show_error(self, message: str):
        logger.error(message)
        self.log_line(f"[bold red]ERROR:[/] {escape(message)}")
        self.push_screen(MessageScreen("Error", message))

    def show_auth_alert(self, message: str):
        logger.warning("Authorization failed: %s", message)
        self.log_line(f"[bold red]AUTHORIZATION:[/] {escape(message)}")
        self.push_screen(MessageScreen("Administrator Privileges Required", f"{AUTH_MESSAGE}\n\n{message}"))

    async def show_entries(self, entries: List[HostEntry]):
        list_view = self.query_one("#entries", ListView)
        index = list_view.index
        await list_view.clear()
        await list_view.extend([HostEntryItem(entry) for entry in entries])
        if entries:
            list_view.index = min(index or 0, len(entries) - 1)

        disabled = sum(1 for entry in entries if not entry.is_enabled)
        self.query_one("#system_stats", Static).update(
            f"{escape(self.manager.hosts_path)}: {len(entries)} entries ({disabled} disabled)"
        )

    def highlighted_entry(self) -> Optional[HostEntry]:
        item = self.query_one("#entries", ListView).highlighted_child
        if isinstance(item, HostEntryItem):
            return item.entry
        return None

    @work(exclusive=True, thread=True, group="load")
    def load_entries(self):
        worker = get_current_worker()
        try:
            entries = list(self.manager.load())
        except HostsError as e:
            self.call_from_thread(self.show_error, f"Error reading hosts file: {e.message}")
            return
        if not worker.is_cancelled:
            self.call_from_thread(self.show_entries, entries)
            self.call_from_thread(self.log_line, f"Loaded {len(entries)} entries.")

    @on(ListView.Selected, "#entries")
    def handle_selected(self, event: ListView.Selected):
        if not isinstance(event.item, HostEntryItem):
            return
        if self.toggle_in_flight:
            self.notify("A change is already being applied.", severity="warning")
            return
        self.toggle_in_flight = True
        self.toggle_entry(event.item.entry)

    @work(thread=True, group="toggle")
    def toggle_entry(self, entry: HostEntry):
        action = "Disabling" if entry.is_enabled else "Enabling"
        self.call_from_thread(self.log_line, f"{action} {escape(entry.domain)} ({escape(entry.ip)})...")
        try:
            entries = list(self.manager.toggle(entry))
        except AuthorizationError as e:
            self.call_from_thread(self.show_auth_alert, e.message)
        except HostsError as e:
            self.call_from_thread(self.show_error, f"Error updating hosts file: {e.message}")
        else:
            self.call_from_thread(self.show_entries, entries)
            self.call_from_thread(self.log_line, f"Saved {escape(self.manager.hosts_path)}.")
        finally:
            self.call_from_thread(self.finish_toggle)

    def finish_toggle(self):
        self.toggle_in_flight = False

    def action_reload(self):
        if self.toggle_in_flight:
            self.notify("Wait for the pending change to finish.", severity="warning")
            return
        self.load_entries()

    def action_preview(self):
        entry = self.highlighted_entry()
        if entry is None:
            self.notify("No entry selected.", severity="warning")
            return
        try:
            diff = self.manager.preview_toggle(entry)
        except HostsError as e:
            self.show_error(f"Preview failed: {e.message}")
            return
        self.push_screen(DiffScreen(diff, self.manager.hosts_path))
