"""
Modal prompts used by the panel: free text input and a picker.
"""

from typing import Callable, Optional, Sequence, Tuple, Union

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList
from textual.widgets.option_list import Option

Validator = Callable[[str], Optional[str]]


class PromptScreen(ModalScreen[Optional[str]]):
    """Ask for a single value. Dismisses with None when cancelled or left empty."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    PromptScreen {
        align: center middle;
    }
    PromptScreen > Vertical {
        width: 60;
        height: auto;
        border: round $accent;
        padding: 1 2;
        background: $surface;
    }
    PromptScreen #error {
        color: $error;
    }
    """

    def __init__(self, prompt: str, placeholder: str = "", validate: Optional[Validator] = None):
        super().__init__()
        self.prompt = prompt
        self.placeholder = placeholder
        self.validator = validate

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.prompt)
            yield Input(placeholder=self.placeholder)
            yield Label("", id="error")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value.strip()
        if not value:
            self.dismiss(None)
            return
        error = self.validator(value) if self.validator else None
        if error:
            self.query_one("#error", Label).update(error)
            return
        self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class PickScreen(ModalScreen[Optional[str]]):
    """Pick one value from a list. Choices are values or (value, label) pairs."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    PickScreen {
        align: center middle;
    }
    PickScreen > Vertical {
        width: 60;
        height: auto;
        max-height: 80%;
        border: round $accent;
        padding: 1 2;
        background: $surface;
    }
    """

    def __init__(self, title: str, choices: Sequence[Union[str, Tuple[str, str]]]):
        super().__init__()
        self.title_text = title
        self.values = []
        self.labels = []
        for choice in choices:
            if isinstance(choice, tuple):
                value, label = choice
            else:
                value = label = choice
            self.values.append(value)
            self.labels.append(label)

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.title_text)
            yield OptionList(*[Option(label) for label in self.labels])

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self.values[event.option_index])

    def action_cancel(self) -> None:
        self.dismiss(None)
