"""Interactive user interface pieces (prompts and Textual pickers)."""

from .prompts import Prompter, TerminalPrompter

__all__ = ["Prompter", "TerminalPrompter"]
