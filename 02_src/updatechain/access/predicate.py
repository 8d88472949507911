"""Predicate protecting a handler with an access policy."""

from typing import Any

from ..exceptions import PolicyError
from ..extract import HandlerInput
from ..logging_config import get_logger
from ..predicate import Predicate, PredicateResult
from .policy import IAccessPolicy

logger = get_logger(__name__)


class AccessPredicate:
    """Evaluates to TRUE when the policy grants access to the update."""

    def __init__(self, policy: IAccessPolicy):
        self._policy = policy
        self.name = f"access {type(policy).__name__}"

    async def evaluate(self, input: HandlerInput) -> PredicateResult:
        try:
            granted = await self._policy.is_granted(input)
        except Exception as e:
            raise PolicyError.wrap(e, self.name)

        update = input.update
        principal = {
            "user_id": update.user_id,
            "user_username": update.user.username if update.user else None,
            "chat_id": update.chat_id,
            "chat_username": update.chat_username,
        }
        if granted:
            logger.debug("Access granted", extra={"context": principal})
            return PredicateResult.TRUE

        logger.info("Access forbidden", extra={"context": principal})
        return PredicateResult.STOP


def with_access_policy(handler: Any, policy: IAccessPolicy) -> Predicate:
    """Run handler only for updates granted by policy."""
    return Predicate(AccessPredicate(policy), handler)
