from datetime import datetime

from textual.widgets import RichLog
from textual.containers import Container
from textual.app import ComposeResult

class ConversationArea(Container):
    DEFAULT_CSS = """
    ConversationArea {
        height: 1fr;
        border: solid $accent;
        margin: 0 1;
    }

    ConversationArea RichLog {
        height: 1fr;
        background: $surface;
    }
    """

    def compose(self) -> ComposeResult:
        yield RichLog(id="conversation_log", highlight=True, markup=True, wrap=True)

    def write_line(self, who: str, text: str, color: str) -> None:
        stamp = datetime.now().strftime("%H:%M")
        self.query_one(RichLog).write(f"[dim]{stamp}[/dim] [bold {color}]{who}:[/bold {color}] {text}")
