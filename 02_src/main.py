"""Main entry point: webhook ingress with a demo handler tree."""

from enum import Enum
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from updatechain import (
    Application,
    Chain,
    CommandPredicate,
    Dialogue,
    DialogueResult,
    HandlerResult,
    Settings,
    on_error,
    with_command,
)
from updatechain.access import AccessRule, InMemoryAccessPolicy, with_access_policy
from updatechain.api import create_fastapi_app
from updatechain.logging_config import get_logger, setup_logging
from updatechain.models import ChatId, Command, Text, Update
from updatechain.ratelimit import (
    Jitter,
    KeyedRateLimitPredicate,
    Quota,
    key_chat_user,
    with_rate_limit,
)
from updatechain.session import Session

logger = get_logger("updatechain.demo")


class NameState(str, Enum):
    START = "start"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"


def log_update(update: Update) -> None:
    logger.info("Got update %s (%s)", update.id, update.kind.value)


def ping(chat_id: ChatId) -> HandlerResult:
    logger.info("pong -> chat %s", chat_id)
    return HandlerResult.STOP


async def session_get(command: Command, session: Session) -> None:
    if not command.args:
        logger.info("usage: /get <key>")
        return
    key = command.args[0]
    value = await session.get(key)
    logger.info("%s = %r", key, value)


async def session_set(command: Command, session: Session) -> None:
    if len(command.args) != 2:
        logger.info("usage: /set <key> <value>")
        return
    key, value = command.args
    await session.set(key, value)
    logger.info("%s saved", key)


async def ask_name(state: NameState, text: Text, session: Session):
    if state is NameState.START:
        logger.info("What is your first name?")
        return NameState.FIRST_NAME
    if state is NameState.FIRST_NAME:
        await session.set("first_name", text.data)
        logger.info("What is your last name?")
        return NameState.LAST_NAME
    first_name = await session.get("first_name", str)
    logger.info("Nice to meet you, %s %s", first_name, text.data)
    return DialogueResult.exit()


def build_handler(settings: Settings) -> Chain:
    """Demo tree: log everything, rate limit and protect the commands."""
    if settings.access_username:
        policy = InMemoryAccessPolicy([AccessRule.allow_user(settings.access_username)])
    else:
        policy = InMemoryAccessPolicy([AccessRule.allow_all()])

    quota = Quota(settings.rate_limit_burst, settings.rate_limit_interval)
    if settings.rate_limit_jitter > 0:
        limiter = KeyedRateLimitPredicate.wait_with_jitter(
            key_chat_user, quota, Jitter(settings.rate_limit_jitter)
        )
    else:
        limiter = KeyedRateLimitPredicate.discard(key_chat_user, quota)

    commands = (
        Chain.once()
        .add(with_command(ping, "/ping"))
        .add(with_command(session_get, "/get"))
        .add(with_command(session_set, "/set"))
        .add(
            Dialogue(
                ask_name,
                name="name",
                initial=NameState.START,
                predicate=CommandPredicate("/name"),
            )
        )
    )

    return (
        Chain.all()
        .add(log_update)
        .add(with_rate_limit(with_access_policy(on_error(commands), policy), limiter))
    )


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    settings = Settings.from_env()
    setup_logging(settings.log_level)

    application = Application(build_handler(settings), settings)
    app = create_fastapi_app(application)

    # Run with uvicorn
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
