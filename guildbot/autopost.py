"""Commands that choose the channels for automatic posts."""

from __future__ import annotations

from guildbot.commands import Command, CommandRegistry, Context, Message, Permission, split_arguments
from guildbot.store import ChannelRef

DISABLE_WORDS = frozenset({"disable", "0", "false"})


def _target_channel(context: Context, message: Message, word: str, disable_words) -> ChannelRef:
    if word in disable_words:
        return ChannelRef()
    return context.client.find_channel(word, message.guild_id)


def set_daily_stats(context: Context, message: Message) -> None:
    """Show or change the daily stats autopost channel."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    current = data.autopost("dailystats")
    words = split_arguments(message.content.lower())

    if len(words) == 1:
        if not current.is_set:
            context.reply(
                message,
                f"Error: Autopost Daily Stats channel is currently not set. Please use `{prefix}dailystats [channel]`",
            )
            return
        context.reply(
            message,
            f"Current Autopost Daily Stats channel is: `{current.name} - {current.id}` \n\n"
            f"To change it please use `{prefix}dailystats [channel]`\n"
            f"To disable it please use `{prefix}dailystats disable`",
        )
        return
    if len(words) != 2:
        context.reply(message, f"Usage: `{prefix}dailystats [channel]`")
        return

    channel = _target_channel(context, message, words[1], {"disable"})
    data.set_autopost("dailystats", channel)

    if not channel.is_set:
        context.reply(message, "Success! Autopost Daily Stats has been disabled!")
        return
    context.reply(
        message,
        f"Success! New Autopost Daily Stats channel is: `{channel.name} - {channel.id}`",
    )


def set_daily_schedule(context: Context, message: Message) -> None:
    """Show or change the daily anime schedule autopost channel."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    current = data.autopost("dailyschedule")
    words = split_arguments(message.content.lower())

    if len(words) == 1:
        if not current.is_set:
            context.reply(
                message,
                "Error: Autopost Daily Anime Schedule channel is currently not set. "
                f"Please use `{prefix}dailyschedule [channel]`",
            )
            return
        context.reply(
            message,
            f"Current Autopost Daily Anime Schedule channel is: `{current.name} - {current.id}` \n\n"
            f"To change it please use `{prefix}dailyschedule [channel]`\n"
            f"To disable it please use `{prefix}dailyschedule disable`",
        )
        return
    if len(words) != 2:
        context.reply(
            message,
            f"Usage: `{prefix}dailyschedule [channel]`\n"
            f"To disable it please use `{prefix}dailyschedule disable`",
        )
        return

    channel = _target_channel(context, message, words[1], DISABLE_WORDS)
    data.set_autopost("dailyschedule", channel)

    if not channel.is_set:
        context.reply(
            message,
            "Success! Autopost Daily Anime Schedule has been disabled! "
            "If this was not intentional please verify the channel ID.",
        )
        return
    context.reply(
        message,
        f"Success! New Autopost Daily Anime Schedule channel is: `{channel.name} - {channel.id}`",
    )


def set_new_episodes(context: Context, message: Message) -> None:
    """Show or change the channel announcing new airing episodes."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    current = data.autopost("newepisodes")
    words = split_arguments(message.content.lower())

    if len(words) == 1:
        if not current.is_set:
            context.reply(
                message,
                "Error: Autopost channel for new airing anime episodes is currently not set. "
                f"Please use `{prefix}newepisodes [channel]`",
            )
            return
        context.reply(
            message,
            f"Current Autopost channel for new airing anime episodes is: `{current.name} - {current.id}` \n\n"
            f" To change it please use `{prefix}newepisodes [channel]`\n"
            f"To disable it please use `{prefix}newepisodes disable`",
        )
        return
    if len(words) != 2:
        context.reply(
            message,
            f"Usage: `{prefix}newepisodes [channel]`\n"
            f"To disable it please use `{prefix}newepisodes disable`",
        )
        return

    channel = _target_channel(context, message, words[1], DISABLE_WORDS)
    data.set_autopost("newepisodes", channel)

    if not channel.is_set:
        context.reply(
            message,
            "Success! Autopost for new airing anime episodes has been disabled! "
            "If this was not intentional please verify the channel ID.",
        )
        return
    context.reply(
        message,
        "Success! New Autopost channel for new airing anime episodes is: "
        f"`{channel.name} - {channel.id}`",
    )


def register(registry: CommandRegistry) -> None:
    """Add the autopost commands to a registry."""
    registry.add(
        Command(
            execute=set_daily_stats,
            trigger="dailystats",
            aliases=("dailystat", "daystats", "daystat", "setdailystats", "setdailystat", "setdaystats", "setdaystat"),
            description="Sets the autopost channel for daily stats",
            permission=Permission.MOD,
            module="autopost",
        )
    )
    registry.add(
        Command(
            execute=set_daily_schedule,
            trigger="dailyschedule",
            aliases=("dailyschedul", "dayschedule", "dayschedul", "setdailyschedule", "setdailyschedul"),
            description="Sets the autopost channel for daily anime schedule",
            permission=Permission.MOD,
            module="autopost",
        )
    )
    registry.add(
        Command(
            execute=set_new_episodes,
            trigger="newepisodes",
            aliases=("newepisode", "newepisod", "episodes", "episode"),
            description="Sets the autopost channel for new airing anime episodes",
            permission=Permission.MOD,
            module="autopost",
        )
    )