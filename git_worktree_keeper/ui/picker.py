"""Textual apps for picking worktrees and pull requests."""

from typing import Generic, List, Optional, Sequence, TypeVar

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, OptionList, SelectionList
from textual.widgets.option_list import Option

T = TypeVar("T")


class FuzzySelectApp(App[Optional[T]], Generic[T]):
    """Single selection with a filter box. Returns None when cancelled."""

    CSS = """
    Input {
        dock: top;
        margin: 0 1;
    }

    OptionList {
        height: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("up", "cursor_up", "Up", show=False),
    ]

    def __init__(self, message: str, items: Sequence[T], labels: Sequence[Text]):
        super().__init__()
        self.message = message
        self.items = list(items)
        self.labels = list(labels)
        self._visible: List[int] = list(range(len(self.items)))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Type to filter...")
        yield OptionList(*self._options())
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.message
        self.query_one(Input).focus()
        option_list = self.query_one(OptionList)
        if self._visible:
            option_list.highlighted = 0

    def _options(self) -> List[Option]:
        return [Option(self.labels[i], id=str(i)) for i in self._visible]

    def on_input_changed(self, event: Input.Changed) -> None:
        needle = event.value.lower()
        self._visible = [
            i for i, label in enumerate(self.labels) if needle in label.plain.lower()
        ]
        option_list = self.query_one(OptionList)
        option_list.clear_options()
        option_list.add_options(self._options())
        if self._visible:
            option_list.highlighted = 0

    def on_input_submitted(self, event: Input.Submitted) -> None:
        option_list = self.query_one(OptionList)
        if option_list.highlighted is None or not self._visible:
            return
        self.exit(self.items[self._visible[option_list.highlighted]])

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(self.items[int(event.option.id)])

    def action_cursor_down(self) -> None:
        self.query_one(OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one(OptionList).action_cursor_up()

    def action_cancel(self) -> None:
        self.exit(None)


class MultiSelectApp(App[Optional[List[T]]], Generic[T]):
    """Multiple selection. Space toggles, Enter confirms, Escape cancels."""

    CSS = """
    SelectionList {
        height: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("enter", "confirm", "Confirm", priority=True),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str, items: Sequence[T], labels: Sequence[Text]):
        super().__init__()
        self.message = message
        self.items = list(items)
        self.labels = list(labels)

    def compose(self) -> ComposeResult:
        yield Header()
        yield SelectionList[int](*[(label, i) for i, label in enumerate(self.labels)])
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.message
        self.sub_title = "Space to select. Enter to confirm."
        self.query_one(SelectionList).focus()

    def action_confirm(self) -> None:
        selected = self.query_one(SelectionList).selected
        self.exit([self.items[i] for i in sorted(selected)] or None)

    def action_cancel(self) -> None:
        self.exit(None)
