"""Operator confirmation before any analytical storage is disabled."""

from __future__ import annotations

from collections.abc import Callable

from scripts.cosmos.models import EnabledContainer
from scripts.cosmos.reporter import Reporter

CONSENT_ANSWERS = ("y", "Y")


def confirm_disable(
    containers: list[EnabledContainer],
    auto_confirm: bool,
    reporter: Reporter,
    input_func: Callable[[str], str] = input,
) -> bool:
    """
    Ask the operator once whether to disable analytical storage.

    The grouped listing is printed by Reporter.render_pending right before this
    is called. Only an exact "y" or "Y" is consent; empty input, any other
    answer and end-of-input all decline.

    Args:
        containers: Containers that would be disabled
        auto_confirm: True when --yes was passed; skips the prompt entirely
        reporter: Reporter providing the prompt text and the cancel message
        input_func: Prompt reader (input() by default)

    Returns:
        bool: True to proceed, False to abort without changes
    """
    if auto_confirm:
        return True

    try:
        answer = input_func(reporter.confirmation_prompt(len(containers)))
    except EOFError:
        answer = ""

    if answer.strip() in CONSENT_ANSWERS:
        return True

    reporter.cancelled()
    return False
