"""Usage statistics of a guild's custom emojis."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping

from guildbot.commands import Command, CommandRegistry, Context, Message, Permission
from guildbot.store import EmojiStat

logger = logging.getLogger(__name__)

REPORT_HEADER = (
    "```CSS\nName:                         ([Message Usage] | [Unique Usage] | [Reactions]) \n\n"
)
REPORT_LIMIT = 1900


def _api_name(emoji_id: str, name: str) -> str:
    if emoji_id and name:
        return f"{name}:{emoji_id}"
    return emoji_id or name


def _stat_for(stats: MutableMapping[str, EmojiStat], emoji_id: str, name: str) -> EmojiStat:
    stat = stats.get(emoji_id)
    if stat is None:
        stat = EmojiStat(id=emoji_id, name=name)
        stats[emoji_id] = stat
    if not stat.id or not stat.name:
        stat.id = emoji_id
        stat.name = name
    return stat


def count_message_emojis(
    stats: MutableMapping[str, EmojiStat],
    emojis: Iterable[tuple[str, str]],
    content: str,
) -> bool:
    """Count uses of the guild's ``(id, name)`` emojis in a message; tell whether any were found."""
    changed = False
    for emoji_id, name in emojis:
        token = f"<:{_api_name(emoji_id, name)}>"
        uses = content.count(token)
        if not uses:
            continue
        stat = _stat_for(stats, emoji_id, name)
        stat.message_usage += uses
        stat.unique_message_usage += 1
        changed = True
    return changed


def record_reaction(
    stats: MutableMapping[str, EmojiStat], emoji_id: str, emoji_name: str, delta: int
) -> EmojiStat:
    """Add ``delta`` to the reaction count of an emoji and return its stat."""
    stat = _stat_for(stats, emoji_id, emoji_name)
    stat.reactions += delta
    return stat


def merge_duplicates(stats: Mapping[str, EmojiStat]) -> dict[str, EmojiStat]:
    """Combine the stats of emojis sharing a name; return them keyed by name."""
    entries = list(stats.values())
    duplicates: dict[str, str] = {}
    for first in entries:
        for second in entries:
            if first.id == second.id or first.name != second.name:
                continue
            if second.id in duplicates:
                continue
            duplicates.setdefault(first.id, first.name)
            duplicates[second.id] = second.name

    by_id = {stat.id: stat for stat in entries}
    merged: dict[str, EmojiStat] = {}
    for one_id, one_name in duplicates.items():
        base = by_id.get(one_id, EmojiStat())
        messages, unique, reactions = base.message_usage, base.unique_message_usage, base.reactions
        for two_id, two_name in duplicates.items():
            if one_id == two_id or not one_id or not two_id:
                continue
            if one_name.lower() == two_name.lower():
                other = by_id.get(two_id, EmojiStat())
                messages += other.message_usage
                unique += other.unique_message_usage
                reactions += other.reactions
        if one_name not in merged:
            merged[one_name] = EmojiStat(
                id=one_id,
                name=one_name,
                message_usage=messages,
                unique_message_usage=unique,
                reactions=reactions,
            )

    for stat in entries:
        merged.setdefault(stat.name, stat)
    return merged


def format_emoji_line(name: str, stat: EmojiStat) -> str:
    """Format one aligned report line for an emoji."""
    line = name.ljust(30) + f"([{stat.message_usage}])"
    line = line.ljust(47) + f"| ([{stat.unique_message_usage}])"
    line = line.ljust(64)
    return line + f"| ([{stat.reactions}])\n"


def emoji_report(stats: Mapping[str, EmojiStat], guild_emoji_names: Iterable[str]) -> list[str]:
    """Build the emoji usage report as a list of code-block messages."""
    merged = merge_duplicates(stats)
    names = set(guild_emoji_names)
    ordered = sorted(merged.values(), key=lambda stat: stat.message_usage, reverse=True)

    chunks: list[str] = []
    current = REPORT_HEADER
    for stat in ordered:
        if not stat.name or stat.name not in names:
            continue
        line = format_emoji_line(stat.name, merged[stat.name])
        if current and len(current) + len(line) > REPORT_LIMIT:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)

    chunks[0] += "```"
    for position in range(1, len(chunks)):
        chunks[position] = "```CSS\n" + chunks[position] + "\n```"
    return chunks


def show_emoji_stats(context: Context, message: Message) -> None:
    """Post the guild's emoji usage report."""
    data = context.store.guild(message.guild_id)
    try:
        emojis = list(context.client.guild_emojis(message.guild_id))
    except Exception:
        logger.exception("Cannot fetch emojis of guild %s", message.guild_id)
        return
    with context.store.lock:
        stats = dict(data.emoji_stats)
    for chunk in emoji_report(stats, (name for _, name in emojis)):
        try:
            context.reply(message, chunk)
        except Exception:
            logger.exception("Cannot send emoji stats message")
            return


def register(registry: CommandRegistry) -> None:
    """Add the emoji stats command to a registry."""
    registry.add(
        Command(
            execute=show_emoji_stats,
            trigger="emoji",
            aliases=("emojistats", "emojis", "emotes", "emote"),
            description="Print server emoji usage stats",
            permission=Permission.MOD,
            module="stats",
        )
    )