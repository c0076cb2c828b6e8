from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_RULE_SPEC = "B3/S23"

_RULE_PATTERN = re.compile(r"^B(?P<birth>[0-8]*)/S(?P<survival>[0-8]*)$", re.IGNORECASE)
_SURVIVAL_FIRST_PATTERN = re.compile(r"^S(?P<survival>[0-8]*)/B(?P<birth>[0-8]*)$", re.IGNORECASE)
# Legacy survival/birth notation, e.g. 23/3.
_LEGACY_PATTERN = re.compile(r"^(?P<survival>[0-8]*)/(?P<birth>[0-8]*)$")


class RuleParseError(ValueError):
    """Raised when a birth/survival rule string cannot be parsed."""


@dataclass(frozen=True)
class LifeRule:
    """Outer-totalistic Moore-neighbourhood rule (Life family)."""

    birth: frozenset[int]
    survival: frozenset[int]

    def __post_init__(self) -> None:
        for name, counts in (("birth", self.birth), ("survival", self.survival)):
            if any(not isinstance(count, int) or count < 0 or count > 8 for count in counts):
                raise ValueError(f"rule {name} counts must be integers in 0..8")

    def next_state(self, alive: bool, neighbours: int) -> bool:
        if alive:
            return neighbours in self.survival
        return neighbours in self.birth

    def to_spec(self) -> str:
        birth = "".join(str(count) for count in sorted(self.birth))
        survival = "".join(str(count) for count in sorted(self.survival))
        return f"B{birth}/S{survival}"


def _parse_counts(digits: str, *, rule_spec: str) -> frozenset[int]:
    counts = [int(digit) for digit in digits]
    if len(set(counts)) != len(counts):
        raise RuleParseError(f"duplicate neighbour count in rule {rule_spec!r}")
    return frozenset(counts)


def parse_rule(rule_spec: str) -> LifeRule:
    """Parse ``B3/S23`` style rule strings (``S23/B3`` order is accepted too)."""
    if not isinstance(rule_spec, str):
        raise RuleParseError("rule spec must be a string")
    normalized = "".join(rule_spec.split())
    match = (
        _RULE_PATTERN.match(normalized)
        or _SURVIVAL_FIRST_PATTERN.match(normalized)
        or _LEGACY_PATTERN.match(normalized)
    )
    if match is None:
        raise RuleParseError(f"invalid birth/survival rule: {rule_spec!r}")
    rule = LifeRule(
        birth=_parse_counts(match.group("birth"), rule_spec=rule_spec),
        survival=_parse_counts(match.group("survival"), rule_spec=rule_spec),
    )
    # Empty quadrants must stay empty, otherwise memoized empty nodes are wrong.
    if 0 in rule.birth:
        raise RuleParseError(f"B0 rules are not supported: {rule_spec!r}")
    return rule
