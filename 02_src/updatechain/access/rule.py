"""Access rules and the principals they apply to."""

from dataclasses import dataclass
from enum import Enum

from ..models import Update


class PrincipalKind(str, Enum):
    """What a principal matches on."""

    ALL = "all"
    USER = "user"
    CHAT = "chat"
    CHAT_USER = "chat_user"


def _matches(expected: int | str, identifier: int | None, username: str | None) -> bool:
    # Integers match ids, strings match usernames.
    if isinstance(expected, str):
        return username is not None and username == expected
    return identifier is not None and identifier == expected


@dataclass(frozen=True)
class Principal:
    """
    Decides whether a rule applies to an update.

    Users and chats are given either by numeric id or by username.
    """

    kind: PrincipalKind
    user: int | str | None = None
    chat: int | str | None = None

    @classmethod
    def all(cls) -> "Principal":
        return cls(PrincipalKind.ALL)

    @classmethod
    def for_user(cls, user: int | str) -> "Principal":
        return cls(PrincipalKind.USER, user=user)

    @classmethod
    def for_chat(cls, chat: int | str) -> "Principal":
        return cls(PrincipalKind.CHAT, chat=chat)

    @classmethod
    def for_chat_user(cls, chat: int | str, user: int | str) -> "Principal":
        return cls(PrincipalKind.CHAT_USER, user=user, chat=chat)

    def _accepts_user(self, update: Update) -> bool:
        user = update.user
        if user is None:
            return False
        return _matches(self.user, user.id, user.username)

    def _accepts_chat(self, update: Update) -> bool:
        return _matches(self.chat, update.chat_id, update.chat_username)

    def accepts(self, update: Update) -> bool:
        if self.kind is PrincipalKind.ALL:
            return True
        if self.kind is PrincipalKind.USER:
            return self._accepts_user(update)
        if self.kind is PrincipalKind.CHAT:
            return self._accepts_chat(update)
        return self._accepts_chat(update) and self._accepts_user(update)


@dataclass(frozen=True)
class AccessRule:
    """A principal plus the decision for updates it accepts."""

    principal: Principal
    is_granted: bool

    @classmethod
    def allow(cls, principal: Principal) -> "AccessRule":
        return cls(principal, True)

    @classmethod
    def deny(cls, principal: Principal) -> "AccessRule":
        return cls(principal, False)

    @classmethod
    def allow_all(cls) -> "AccessRule":
        return cls.allow(Principal.all())

    @classmethod
    def deny_all(cls) -> "AccessRule":
        return cls.deny(Principal.all())

    @classmethod
    def allow_user(cls, user: int | str) -> "AccessRule":
        return cls.allow(Principal.for_user(user))

    @classmethod
    def deny_user(cls, user: int | str) -> "AccessRule":
        return cls.deny(Principal.for_user(user))

    @classmethod
    def allow_chat(cls, chat: int | str) -> "AccessRule":
        return cls.allow(Principal.for_chat(chat))

    @classmethod
    def deny_chat(cls, chat: int | str) -> "AccessRule":
        return cls.deny(Principal.for_chat(chat))

    @classmethod
    def allow_chat_user(cls, chat: int | str, user: int | str) -> "AccessRule":
        return cls.allow(Principal.for_chat_user(chat, user))

    @classmethod
    def deny_chat_user(cls, chat: int | str, user: int | str) -> "AccessRule":
        return cls.deny(Principal.for_chat_user(chat, user))

    def accepts(self, update: Update) -> bool:
        return self.principal.accepts(update)
