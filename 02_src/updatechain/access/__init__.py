"""Access control for handlers."""

from .policy import IAccessPolicy, InMemoryAccessPolicy
from .predicate import AccessPredicate, with_access_policy
from .rule import AccessRule, Principal, PrincipalKind

__all__ = [
    "AccessPredicate",
    "AccessRule",
    "IAccessPolicy",
    "InMemoryAccessPolicy",
    "Principal",
    "PrincipalKind",
    "with_access_policy",
]
