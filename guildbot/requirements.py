"""Message requirements: phrases that messages must contain."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence

from guildbot.commands import (
    Command,
    CommandRegistry,
    Context,
    Message,
    Permission,
    split_arguments,
    split_message,
)
from guildbot.store import MessageRequirement, Store

logger = logging.getLogger(__name__)

REQUIREMENT_TYPES = frozenset({"soft", "hard"})


def _strip_arrows(phrase: str) -> str:
    return phrase.removeprefix("<").removesuffix(">")


def parse_requirement_arguments(
    words: Sequence[str], channel_lookup: Callable[[str], str]
) -> MessageRequirement:
    """Parse the words of an add-requirement command.

    The first word is the command itself, followed by an optional channel,
    an optional type (``soft`` or ``hard``) and the phrase. ``channel_lookup``
    turns a word into a channel id, or an empty string if it names none.
    Raise ValueError when no phrase is given.
    """
    if len(words) < 2:
        raise ValueError("no phrase given")

    channel_id = ""
    requirement_type = ""
    rest = list(words[1:])

    if len(rest) == 1:
        phrase = rest[0]
    else:
        channel_id = channel_lookup(rest[0])
        if not channel_id:
            if rest[0] in REQUIREMENT_TYPES:
                requirement_type = rest[0]
                phrase = " ".join(rest[1:])
            else:
                phrase = " ".join(rest)
        elif len(rest) > 2 and rest[1] in REQUIREMENT_TYPES:
            requirement_type = rest[1]
            phrase = " ".join(rest[2:])
        else:
            phrase = " ".join(rest[1:])

    return MessageRequirement(
        phrase=_strip_arrows(phrase),
        requirement_type=requirement_type or "soft",
        channel_id=channel_id,
    )


def check_requirements(
    store: Store,
    guild_id: str,
    channel_id: str,
    author_id: str,
    text: str,
    mentions: str = "",
) -> bool:
    """Tell whether a message breaks one of the guild's requirements.

    A message containing a requirement's phrase (in its text or in the names
    it mentions) makes its author the requirement's last user. A ``hard``
    requirement removes every message without the phrase; a ``soft`` one
    only those from someone other than the last user who said it.
    """
    lowered = text.lower()
    data = store.guild(guild_id)
    with store.lock:
        requirements = list(data.requirements)

    for requirement in requirements:
        if requirement.channel_id and requirement.channel_id != channel_id:
            continue
        pattern = re.compile(requirement.phrase)
        if pattern.search(lowered) is not None or pattern.search(mentions) is not None:
            with store.lock:
                requirement.last_user_id = author_id
            continue
        if requirement.requirement_type == "soft" and requirement.last_user_id != author_id:
            return True
        if requirement.requirement_type == "hard":
            return True
    return False


def _channel_lookup(context: Context, message: Message) -> Callable[[str], str]:
    return lambda word: context.client.find_channel(word, message.guild_id).id


def add_requirement(context: Context, message: Message) -> None:
    """Add a phrase to the guild's message requirements."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    words = split_arguments(message.content.lower(), 3)

    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}mrequire [channel]* [type]* [phrase]`\n\n"
            "[channel] is a ping or ID to the channel where the requirement will only be done.\n"
            "[type] can either be soft or hard. Soft means a user must mention the phrase in "
            "their first message and is okay until someone else types a message. Hard means all "
            "messages must contain that phrase. Defaults to soft.\n"
            "[phrase] is either regex expression (preferable) or just a simple string.\n\n"
            "***** is optional.",
        )
        return

    requirement = parse_requirement_arguments(words, _channel_lookup(context, message))

    with context.store.lock:
        for position, existing in enumerate(data.requirements):
            if (
                existing.phrase == requirement.phrase
                and existing.channel_id == requirement.channel_id
            ):
                data.requirements[position] = requirement
                break
        else:
            data.requirements.append(requirement)

    context.reply(
        message, f"`{requirement.phrase}` has been added to the message requirement list."
    )


def remove_requirement(context: Context, message: Message) -> None:
    """Remove a phrase from the guild's message requirements."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix

    if not data.requirements:
        context.reply(message, "Error: There are no message requirements.")
        return

    words = split_arguments(message.content.lower(), 2)
    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}unmrequire [channel]* [phrase]`\n\n"
            "[channel] is the channel for which that message requirement was set.\n"
            "`[phrase]` is the phrase that was used when creating a message requirement.\n\n"
            " ***** are optional.",
        )
        return

    channel_id = ""
    if len(words) == 3:
        channel_id = _channel_lookup(context, message)(words[1])
        phrase = words[2] if channel_id else f"{words[1]} {words[2]}"
    else:
        phrase = words[1]
    phrase = _strip_arrows(phrase)

    with context.store.lock:
        kept = [
            requirement
            for requirement in data.requirements
            if not (
                requirement.phrase == phrase
                and (not channel_id or requirement.channel_id == channel_id)
            )
        ]
        removed = len(kept) != len(data.requirements)
        data.requirements[:] = kept

    if not removed:
        context.reply(message, "Error: No such message requirement exists.")
        return
    context.reply(message, f"`{phrase}` has been removed from the message requirement list.")


def view_requirements(context: Context, message: Message) -> None:
    """List the guild's message requirements."""
    data = context.store.guild(message.guild_id)
    with context.store.lock:
        requirements = list(data.requirements)

    if not requirements:
        context.reply(message, "Error: There are no message requirements.")
        return

    text = "".join(
        f"**{requirement.phrase}** - **{requirement.channel_id or 'All channels'}** - "
        f"**{requirement.requirement_type}**\n"
        for requirement in requirements
    ).removesuffix("\n")

    for chunk in split_message(text):
        try:
            context.reply(message, chunk)
        except Exception:
            logger.exception("Cannot send message requirements message")
            try:
                context.reply(message, "Error: Cannot send message requirements message.")
            except Exception:
                logger.exception("Cannot send message requirements error message")
                return


def register(registry: CommandRegistry) -> None:
    """Add the message requirement commands to a registry."""
    registry.add(
        Command(
            execute=view_requirements,
            trigger="mrequirements",
            aliases=(
                "viewmrequirements",
                "showmrequirements",
                "messagerequirements",
                "messagereqirement",
                "viewmessrequirements",
                "messrequirements",
                "mrequirement",
                "messrequirement",
            ),
            description="Prints all current message requirement filters",
            permission=Permission.MOD,
            module="filters",
        )
    )
    registry.add(
        Command(
            execute=add_requirement,
            trigger="mrequire",
            aliases=(
                "messrequire",
                "setmrequire",
                "setmessrequire",
                "setmessagerequire",
                "addmrequire",
                "messagerequire",
                "addmessrequire",
                "addmessagereqyure",
            ),
            description=(
                "Adds a phrase to the message requirement list where it will remove messages "
                "that do not contain it"
            ),
            permission=Permission.MOD,
            module="filters",
        )
    )
    registry.add(
        Command(
            execute=remove_requirement,
            trigger="unmrequire",
            aliases=(
                "munrequire",
                "removemrequire",
                "removemrequirement",
                "deletemrequire",
                "deletemrequirement",
                "unmessrequire",
                "deletemessrequire",
                "removemessrequire",
            ),
            description="Removes a phrase from the message requirement list",
            permission=Permission.MOD,
            module="filters",
        )
    )