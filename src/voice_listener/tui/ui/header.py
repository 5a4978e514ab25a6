from textual.widgets import Header

class ListenerHeader(Header):
    DEFAULT_CSS = """
    ListenerHeader {
        dock: top;
        height: 1;
        content-align: center middle;
    }
    """
    def __init__(self):
        super().__init__(show_clock=True)
