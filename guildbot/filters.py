"""Phrase filters that remove offending messages and reactions."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from guildbot.commands import (
    Command,
    CommandRegistry,
    Context,
    Message,
    Permission,
    split_arguments,
    split_message,
)
from guildbot.requirements import check_requirements
from guildbot.store import PhraseFilter

logger = logging.getLogger(__name__)

_MENTION = re.compile(r"<@!?\d+>")


def _strip_arrows(phrase: str) -> str:
    return phrase.removeprefix("<").removesuffix(">")


def find_filtered_phrases(
    filters: Iterable[PhraseFilter], text: str, mentions: str = ""
) -> list[str]:
    """Return every match of every filter in the lowered text, then in the mentions.

    Raise re.error if a filter is not a valid regular expression.
    """
    lowered = text.lower()
    found: list[str] = []
    for phrase_filter in filters:
        pattern = re.compile(phrase_filter.pattern)
        found.extend(match.group(0) for match in pattern.finditer(lowered))
        found.extend(match.group(0) for match in pattern.finditer(mentions))
    return found


def is_filtered_reaction(filters: Iterable[PhraseFilter], emoji_api_name: str) -> bool:
    """Tell whether a reaction's emoji API name matches one of the filters."""
    for phrase_filter in filters:
        pattern = phrase_filter.pattern
        if "<:" in pattern:
            pattern = pattern.replace("<:", "").removesuffix(">")
        elif "<a:" in pattern:
            pattern = pattern.replace("<a:", "").removesuffix(">")
        if re.search(pattern, emoji_api_name) is not None:
            return True
    return False


def _mention_names(context: Context, message: Message) -> str:
    """Collect the lowered nicknames of the members a message mentions."""
    lowered = message.content.lower()
    if "<@" not in lowered:
        return ""
    data = context.store.guild(message.guild_id)
    names = ""
    with context.store.lock:
        for mention in _MENTION.findall(lowered):
            user_id = mention.removeprefix("<@").removeprefix("!").removesuffix(">")
            member = data.members.get(user_id)
            if member is None or not member.nickname:
                continue
            names += " " + member.nickname.lower()
    return names


def _unique(words: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(words))


def check_message(context: Context, message: Message) -> bool:
    """Remove a message that uses a filtered phrase or breaks a requirement.

    Return whether the message was removed.
    """
    if not message.guild_id or not message.author_id or message.author_is_bot:
        return False
    if context.client.is_privileged(message.author_id, message.guild_id):
        return False

    data = context.store.guild(message.guild_id)
    mentions = _mention_names(context, message)
    with context.store.lock:
        filters = list(data.filters)

    try:
        phrases = find_filtered_phrases(filters, message.content, mentions)
    except re.error:
        logger.exception("Invalid filter in guild %s", message.guild_id)
        return False

    if not phrases:
        try:
            broken = check_requirements(
                context.store,
                message.guild_id,
                message.channel_id,
                message.author_id,
                message.content,
                mentions,
            )
        except re.error:
            logger.exception("Invalid message requirement in guild %s", message.guild_id)
            return False
        if not broken:
            return False

    try:
        context.client.delete_message(message.channel_id, message.id)
    except Exception:
        logger.exception("Cannot delete filtered message %s", message.id)
        return False

    if not phrases:
        return True

    removals = _unique(phrases)
    bot_log = data.settings.bot_log
    if bot_log.id:
        try:
            context.client.send_message(
                bot_log.id,
                f"Filtered message by <@{message.author_id}> in <#{message.channel_id}>: "
                f"removed for using: {', '.join(removals)}",
            )
        except Exception:
            logger.exception("Cannot send filter notice")

    try:
        context.client.send_direct(
            message.author_id,
            f"Your message `{message.content.lower()}` was removed for using: "
            f"_{', '.join(removals)}_ \n\n",
        )
    except Exception:
        logger.info("Cannot message user %s", message.author_id)
    return True


def add_filter(context: Context, message: Message) -> None:
    """Add a phrase to the guild's filter list."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    words = split_arguments(message.content.lower(), 1)

    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}filter [phrase]`\n\n"
            "[phrase] is either regex expression (preferable) or just a simple string.",
        )
        return

    phrase = _strip_arrows(words[1])
    with context.store.lock:
        if all(existing.pattern != phrase for existing in data.filters):
            data.filters.append(PhraseFilter(phrase))

    context.reply(message, f"`{phrase}` has been added to the filter list.")


def remove_filter(context: Context, message: Message) -> None:
    """Remove a phrase from the guild's filter list."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix

    if not data.filters:
        context.reply(message, "Error: There are no filters.")
        return

    words = split_arguments(message.content.lower(), 1)
    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}unfilter [phrase]`\n\n"
            "[phrase] is the filter phrase that was used when creating a filter.",
        )
        return

    phrase = _strip_arrows(words[1])
    with context.store.lock:
        kept = [existing for existing in data.filters if existing.pattern != phrase]
        removed = len(kept) != len(data.filters)
        data.filters[:] = kept

    if not removed:
        context.reply(message, "Error: No such filter exists.")
        return
    context.reply(message, f"`{phrase}` has been removed from the filter list.")


def view_filters(context: Context, message: Message) -> None:
    """List the guild's filters."""
    data = context.store.guild(message.guild_id)
    with context.store.lock:
        filters = list(data.filters)

    if not filters:
        context.reply(message, "Error: There are no filters.")
        return

    text = "".join(f"**{phrase_filter.pattern}**\n" for phrase_filter in filters)
    text = text.removesuffix("\n")

    for chunk in split_message(text):
        try:
            context.reply(message, chunk)
        except Exception:
            logger.exception("Cannot send filters message")
            try:
                context.reply(message, "Error: Cannot send filters message.")
            except Exception:
                logger.exception("Cannot send filters error message")
            return


def register(registry: CommandRegistry) -> None:
    """Add the filter commands to a registry."""
    registry.add(
        Command(
            execute=view_filters,
            trigger="filters",
            aliases=("viewfilters", "viewfilter"),
            description="Prints all current filters",
            permission=Permission.MOD,
            module="filters",
        )
    )
    registry.add(
        Command(
            execute=add_filter,
            trigger="addfilter",
            aliases=("filter", "setfilter"),
            description=(
                "Adds a phrase to the filters list. Works for reacts and emotes too. "
                "Username regex for more complex filters"
            ),
            permission=Permission.MOD,
            module="filters",
        )
    )
    registry.add(
        Command(
            execute=remove_filter,
            trigger="removefilter",
            aliases=("deletefilter", "unfilter"),
            description="Removes a phrase from the filters list",
            permission=Permission.MOD,
            module="filters",
        )
    )