"""Interactive oracle backed by questionary prompts."""

from __future__ import annotations

import questionary

from schemagen.core.progress import get_console, print_code, suppress_console_logs
from schemagen.oracle.models import Answer, Question

_CHOICE_LABELS = {
    Answer.YES: "Yes, it holds IDs",
    Answer.NO: "No, never ask again",
    Answer.DEFER: "Not sure, ask me next run",
    Answer.STOP: "Stop asking for now",
    Answer.KEEP: "Keep",
    Answer.EDIT: "Edit",
    Answer.DROP: "Drop",
    Answer.SIMPLE: "Simple reference to one table",
    Answer.SERIALIZED: "Serialized / composite value",
}

_STYLE = questionary.Style(
    [
        ("question", "bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:cyan"),
    ]
)


class QuestionaryOracle:
    """Asks a person at the terminal."""

    def __init__(self, *, show_code: bool = True) -> None:
        self.show_code = show_code

    def _show_context(self, question: Question) -> None:
        console = get_console()
        ctx = question.context
        if ctx.get("file"):
            console.print(f"[dim]{ctx['file']}:{ctx.get('line', '?')}[/dim]", highlight=False)
        if self.show_code and ctx.get("code"):
            print_code(ctx["code"], start_line=ctx.get("line") or 1)

    def ask(self, question: Question) -> str:
        with suppress_console_logs():
            self._show_context(question)
            if question.choices:
                answer = questionary.select(
                    question.text,
                    choices=[
                        questionary.Choice(_CHOICE_LABELS.get(c, c), value=c)
                        for c in question.choices
                    ],
                    style=_STYLE,
                ).ask()
                if answer is None:
                    # Ctrl-C
                    return Answer.STOP if Answer.STOP in question.choices else question.choices[0]
                return str(answer)

            answer = questionary.text(
                question.text, default=question.default or "", style=_STYLE
            ).ask()
            return "" if answer is None else str(answer)
