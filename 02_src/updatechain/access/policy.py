"""Access policies."""

from typing import Iterable, Protocol

from ..extract import HandlerInput
from .rule import AccessRule


class IAccessPolicy(Protocol):
    """Decides whether an update may reach a protected handler."""

    async def is_granted(self, input: HandlerInput) -> bool:
        """Return True to grant access. May raise on lookup failure."""
        ...


class InMemoryAccessPolicy:
    """Ordered rule list; the first accepting rule decides, default deny."""

    def __init__(self, rules: Iterable[AccessRule] = ()):
        self._rules: list[AccessRule] = list(rules)

    def add_rule(self, rule: AccessRule) -> "InMemoryAccessPolicy":
        self._rules.append(rule)
        return self

    @property
    def rules(self) -> list[AccessRule]:
        return list(self._rules)

    async def is_granted(self, input: HandlerInput) -> bool:
        for rule in self._rules:
            if rule.accepts(input.update):
                return rule.is_granted
        return False
