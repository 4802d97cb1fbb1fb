"""
Operator input for nfs-bench.

Menu and driver code never call input() directly; they receive a prompt
callable so tests can feed scripted answers.
"""

from utils import color_text, print_error


class ConsolePrompt:
    """Read answers from the terminal."""

    def __call__(self, question):
        return input(color_text(question, "BOLD")).strip()


class ScriptedPrompt:
    """
    Replay pre-scripted answers, e.g. ScriptedPrompt(["2", "", "0"]).

    Raises EOFError when the script runs out, like input() on a closed stdin.
    """

    def __init__(self, answers):
        self._answers = list(answers)
        self.questions = []

    def __call__(self, question):
        self.questions.append(question)
        if not self._answers:
            raise EOFError("scripted input exhausted")
        return str(self._answers.pop(0)).strip()

    @property
    def remaining(self):
        return len(self._answers)


def ask_with_default(prompt, question, default, convert=str, validate=None):
    """
    Ask until the answer converts (and validates); empty input picks the default.

    Args:
        prompt: Prompt callable.
        question: Text shown to the operator; '[default]' is appended.
        default: Returned for an empty answer.
        convert: Callable turning the answer into a value; ValueError reprompts.
        validate: Optional callable returning an error message or None.
    """
    while True:
        answer = prompt(f"{question} [{default}]: ")
        if not answer:
            return default
        try:
            value = convert(answer)
        except ValueError:
            print_error(f"Invalid value: {answer}")
            continue
        message = validate(value) if validate else None
        if message:
            print_error(message)
            continue
        return value


def confirm(prompt, question):
    """Yes/no question defaulting to no."""
    answer = prompt(f"{question} [y/N]: ")
    return answer.lower() in ("y", "yes")
