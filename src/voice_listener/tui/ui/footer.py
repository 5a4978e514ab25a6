from textual.widgets import Input

class InputFooter(Input):
    DEFAULT_CSS = """
    InputFooter {
        dock: bottom;
        margin: 0 1 1 1;
    }
    """

    def __init__(self):
        super().__init__(placeholder="输入 按Enter提交 (Type 'quit' to exit)", id="user_input")
