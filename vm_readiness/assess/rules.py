"""
Ordered first-match-wins rule lists.

OS compatibility lookup and wave assignment are both expressed as an explicit,
ordered tuple of ``Rule`` entries evaluated top to bottom. The first rule whose
predicate accepts the subject decides the outcome, so rule order is part of the
behaviour and can be inspected and tested on its own.
"""

from collections.abc import Callable, Sequence
from typing import Any, NamedTuple


class Rule(NamedTuple):
    """
    A named predicate paired with the result it yields on a match.

    Attributes:
        name: Identifier used in logs and tests
        predicate: Callable deciding whether the rule applies to a subject
        result: Value returned when the predicate matches
    """

    name: str
    predicate: Callable[[Any], bool]
    result: Any


def first_match(rules: Sequence[Rule], subject: Any, default: Any = None) -> Any:
    """
    Return the result of the first rule whose predicate matches ``subject``.

    Args:
        rules: Ordered rules, evaluated in sequence
        subject: Value passed to each predicate
        default: Returned when no rule matches

    Example:
        >>> rules = [Rule("small", lambda n: n <= 10, "S"), Rule("any", lambda n: True, "L")]
        >>> first_match(rules, 4)
        'S'
    """
    rule = matching_rule(rules, subject)
    return rule.result if rule is not None else default


def matching_rule(rules: Sequence[Rule], subject: Any) -> Rule | None:
    """Return the first matching rule itself (for reporting which rule fired)."""
    for rule in rules:
        if rule.predicate(subject):
            return rule
    return None
