"""
Confirmation policies for mutating operations.

A policy is a callable ``(action, impact) -> bool``; returning False
aborts the operation before any request is sent.
"""

from enum import IntEnum
from typing import Callable


class ConfirmImpact(IntEnum):
    """How much damage an operation can do if run by mistake."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def parse(cls, value: str) -> "ConfirmImpact":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Invalid confirmation impact: {value}")


ConfirmationPolicy = Callable[[str, ConfirmImpact], bool]


def always_confirm(action: str, impact: ConfirmImpact) -> bool:
    return True


def never_confirm(action: str, impact: ConfirmImpact) -> bool:
    return False


def threshold_policy(threshold: ConfirmImpact, ask: Callable[[str], bool]) -> ConfirmationPolicy:
    """
    Build a policy that asks only for operations at or above ``threshold``.

    Args:
        threshold: Lowest impact that requires asking
        ask: Asks the user about an action and returns the answer

    Returns:
        Confirmation policy
    """
    def policy(action: str, impact: ConfirmImpact) -> bool:
        if impact < threshold:
            return True
        return ask(action)

    return policy
