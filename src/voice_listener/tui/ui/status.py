from textual.widgets import Static

from ...config.settings import ListenerConfig


def _on_off(flag: bool) -> str:
    return "开启" if flag else "关闭"


class StatusBar(Static):
    """One line of mode flags plus the current listening state."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        margin: 0 1;
        color: $text-muted;
    }
    """

    def __init__(self, config: ListenerConfig):
        super().__init__(id="status_bar")
        self._modes = (
            f"语音合成[{_on_off(not config.offline_mode)}]  "
            f"打断[{_on_off(config.interrupt_mode)}]  "
            f"唤醒词[{'/'.join(config.trigger_phrases)}]"
        )
        self._state = ""

    def on_mount(self) -> None:
        self._refresh()

    def set_state(self, state: str) -> None:
        self._state = state
        self._refresh()

    def _refresh(self) -> None:
        self.update(f"{self._modes}  {self._state}".rstrip())

    @property
    def state(self) -> str:
        return self._state
