from typing import Literal

from typing_extensions import override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage


class ConfirmModal(ModalScreen[bool]):
    """
    Yes/No question. Dismisses with True on Yes; Escape answers No.
    """

    BINDINGS = [Binding("escape", "answer(False)", "No", show=False)]

    def __init__(self, question: str, tone: Literal["warning", "error"] = "warning"):
        super().__init__()
        self.question = question
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.question, id="caption")
            with Horizontal(id="dialog"):
                yield Button("No", variant="default", id="btn-no")
                yield Button("Yes", variant=self.tone, id="btn-yes")

    def on_mount(self):
        # every question here is destructive, so focus starts on No
        self.query_one("#btn-no").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.action_answer(event.button.id == "btn-yes")

    def action_answer(self, confirmed: bool) -> None:
        self.dismiss(confirmed)


class QuitConfirmModal(ConfirmModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", tone="error")

    @override
    def action_answer(self, confirmed: bool) -> None:
        if confirmed:
            self.post_message(QuitRequestedMessage())
        self.dismiss(confirmed)
