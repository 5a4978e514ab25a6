import logging
import threading

from textual.app import App, ComposeResult
from textual.widgets import Footer

from ..config.settings import ListenerConfig
from ..core.assistant import Assistant
from ..core.events import LISTENING_STARTED, LISTENING_STOPPED, UpdateType
from ..errors import FatalError
from .ui.header import ListenerHeader
from .ui.conversation import ConversationArea
from .ui.footer import InputFooter
from .ui.status import StatusBar

logger = logging.getLogger(__name__)

STATE_AWAITING_WAKE = "等待唤醒词..."
STATE_READY = "已唤醒"
STATE_LISTENING = "正在识别..."


class ListenerApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [("escape", "quit", "Quit")]

    def __init__(self, config: ListenerConfig):
        super().__init__()
        self._config = config
        self._ui_thread = threading.get_ident()
        self.assistant = Assistant(config=config, on_exit_request=self._request_exit)

    def compose(self) -> ComposeResult:
        yield ListenerHeader()
        yield ConversationArea()
        yield StatusBar(self._config)
        yield InputFooter()
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Homo Voice Listener"
        try:
            self.assistant.start()
        except FatalError as e:
            logger.critical("Failed to start listener: %s", e)
            self.exit(return_code=1)
            return
        self.set_interval(0.1, self.check_display_queue)

    def _request_exit(self) -> None:
        if threading.get_ident() == self._ui_thread:
            self.exit()
        else:
            self.call_from_thread(self.exit)

    def _idle_state(self) -> str:
        return STATE_READY if self.assistant.wake_gate.is_released() else STATE_AWAITING_WAKE

    def check_display_queue(self):
        """Render new messages and status signals."""
        status = self.query_one(StatusBar)
        for msg in self.assistant.get_messages():
            if msg.update_type is UpdateType.SIGNAL:
                if msg.text == LISTENING_STARTED:
                    status.set_state(STATE_LISTENING)
                elif msg.text == LISTENING_STOPPED:
                    status.set_state(self._idle_state())
                continue
            if msg.is_user:
                self.query_one(ConversationArea).write_line("你", msg.text, "green")
            else:
                self.query_one(ConversationArea).write_line(msg.speaker.lower(), msg.text, "blue")
        if status.state in ("", STATE_AWAITING_WAKE):
            status.set_state(self._idle_state())

    def on_input_submitted(self, event: InputFooter.Submitted) -> None:
        user_input = event.value
        if user_input:
            self.assistant.process_input(user_input)
            self.query_one(InputFooter).value = ""

    def on_unmount(self) -> None:
        self.assistant.stop()
