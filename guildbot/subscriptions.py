"""Notifications for new episodes of airing anime."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time, timezone

from guildbot.commands import Command, CommandRegistry, Context, Message, split_arguments, split_message
from guildbot.store import ScheduledShow, ShowSub

logger = logging.getLogger(__name__)

_AIR_TIME = re.compile(r"(\d{1,2}):(\d{2}) (AM|PM)")


def parse_air_time(text: str) -> time:
    """Parse an air time such as ``3:04 PM``; raise ValueError if malformed."""
    match = _AIR_TIME.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse air time {text!r}")
    hour, minute, half = int(match[1]), int(match[2]), match[3]
    if hour > 12:
        raise ValueError(f"hour out of range in {text!r}")
    if minute > 59:
        raise ValueError(f"minute out of range in {text!r}")
    if half == "PM" and hour < 12:
        hour += 12
    elif half == "AM" and hour == 12:
        hour = 0
    return time(hour, minute)


def _minutes_since_air(now: datetime, air_time: time) -> int:
    return (now.hour * 60 + now.minute) - (air_time.hour * 60 + air_time.minute)


def has_aired(now: datetime, air_time: time) -> bool:
    """Tell whether a show airing at ``air_time`` today has aired by ``now``."""
    return _minutes_since_air(now, air_time) > 0


def _schedule_day(now: datetime) -> int:
    """Schedule day of ``now``: 0 is Sunday, 6 is Saturday."""
    return (now.weekday() + 1) % 7


def _utc(now: datetime) -> datetime:
    return now.astimezone(timezone.utc) if now.tzinfo is not None else now


def _notification_text(show: ScheduledShow) -> str:
    text = f"**{show.name} __{show.episode}__** is out!"
    if show.key:
        text += f"\nShow: `{show.key}`"
    return text


def subscribe(context: Context, message: Message) -> None:
    """Subscribe the author to new-episode notifications of a show."""
    prefix = context.settings_for(message).prefix
    words = split_arguments(message.content.lower(), 1)
    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}sub [anime]`\n\n"
            "Anime is the anime name from the schedule command",
        )
        return

    wanted = words[1]
    now = datetime.now(timezone.utc)
    today = _schedule_day(now)
    show_name = ""

    with context.store.lock:
        schedule = {day: list(shows) for day, shows in context.store.anime_schedule.items()}
        existing = list(context.store.anime_subs.get(message.author_id, []))

    added = False
    for day, shows in schedule.items():
        for show in shows:
            if show.name.lower() != wanted:
                continue
            show_name = show.name
            if any(sub.show.lower() == show.name.lower() for sub in existing):
                context.reply(message, f"Error: You are already subscribed to `{show.name}`")
                return

            aired_today = False
            if day == today:
                try:
                    air_time = parse_air_time(show.air_time)
                except ValueError as error:
                    logger.warning("%s", error)
                    continue
                aired_today = has_aired(now, air_time)

            with context.store.lock:
                context.store.anime_subs.setdefault(message.author_id, []).append(
                    ShowSub(show.name, notified=aired_today, guild=False)
                )
            added = True
            break
        if added:
            break

    if not show_name:
        context.reply(
            message,
            "Error: That is not a valid airing show name. It has to be airing. "
            f"Make sure you're using the exact show name from `{prefix}schedule`",
        )
        return

    context.reply(message, f"Success! You have subscribed to notifications for `{show_name}`")


def unsubscribe(context: Context, message: Message) -> None:
    """Remove one of the author's show subscriptions."""
    prefix = context.settings_for(message).prefix
    words = split_arguments(message.content.lower(), 1)
    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}unsub [anime]`\n\n"
            "Anime is the anime name from the schedule command",
        )
        return

    wanted = words[1]
    removed = False
    with context.store.lock:
        subs = context.store.anime_subs.get(message.author_id)
        if subs:
            for position, sub in enumerate(subs):
                if sub.show.lower() == wanted.lower():
                    if len(subs) == 1:
                        del context.store.anime_subs[message.author_id]
                    else:
                        del subs[position]
                    removed = True
                    break

    if not removed:
        context.reply(message, f"Error: You are not subscribed to `{wanted}`")
        return
    context.reply(message, f"Success! You have unsubscribed from `{wanted}`")


def view_subscriptions(context: Context, message: Message) -> None:
    """List the shows the author is subscribed to."""
    prefix = context.settings_for(message).prefix
    words = split_arguments(message.content)
    if len(words) != 1:
        context.reply(message, f"Usage: `{prefix}subs`")
        return

    with context.store.lock:
        subs = list(context.store.anime_subs.get(message.author_id, []))
    text = "".join(f"**{number}.** {sub.show}\n" for number, sub in enumerate(subs, start=1))

    if not text:
        context.reply(message, "Error: You have no active show subscriptions.")
        return
    if len(text) <= 1900:
        context.reply(message, text)
        return
    for chunk in split_message(text):
        try:
            context.reply(message, chunk)
        except Exception:
            context.reply(message, "Error: Cannot send anime notification subscriptions message.")
            return


def notify_subscribers(context: Context, now: datetime) -> int:
    """Send notifications for today's aired shows; return how many were sent."""
    now = _utc(now)
    store = context.store
    with store.lock:
        today_shows = list(store.anime_schedule.get(_schedule_day(now), []))
        subscriptions = {user: list(subs) for user, subs in store.anime_subs.items()}

    sent = 0
    for user_id, subs in subscriptions.items():
        for sub in subs:
            if sub.notified:
                continue
            for show in today_shows:
                if show.delayed:
                    continue
                if sub.show.lower() != show.name.lower():
                    continue
                try:
                    air_time = parse_air_time(show.air_time)
                except ValueError as error:
                    logger.warning("%s", error)
                    continue
                if not has_aired(now, air_time):
                    continue

                if sub.guild:
                    channel = store.guild(user_id).autopost("newepisodes")
                    if not channel.is_set:
                        continue
                    try:
                        context.client.send_message(channel.id, _notification_text(show))
                    except Exception:
                        logger.exception("Cannot send episode notification to %s", channel.id)
                        continue
                else:
                    try:
                        context.client.send_direct(user_id, _notification_text(show))
                    except Exception:
                        logger.info("Cannot message user %s", user_id)
                with store.lock:
                    sub.notified = True
                sent += 1
    return sent


def reset_subscriptions(context: Context, now: datetime) -> None:
    """Mark today's subscriptions as notified exactly when their show has aired."""
    store = context.store
    with store.lock:
        today_shows = list(store.anime_schedule.get(_schedule_day(now), []))
        for subs in store.anime_subs.values():
            for sub in subs:
                for show in today_shows:
                    if sub.show.lower() != show.name.lower():
                        continue
                    try:
                        air_time = parse_air_time(show.air_time)
                    except ValueError as error:
                        logger.warning("%s", error)
                        continue
                    sub.notified = _minutes_since_air(now, air_time) >= 0


def register(registry: CommandRegistry) -> None:
    """Add the subscription commands to a registry."""
    registry.add(
        Command(
            execute=subscribe,
            trigger="sub",
            aliases=("subscribe", "subs", "animesub", "subanime", "addsub"),
            description=(
                "Get a message whenever an anime's new episode is released (subbed if possible). "
                "Please have your DM settings accept messages from non-friends"
            ),
            module="normal",
            dm_able=True,
        )
    )
    registry.add(
        Command(
            execute=unsubscribe,
            trigger="unsub",
            aliases=("unsubscribe", "unsubs", "unanimesub", "unsubanime", "removesub", "killsub", "stopsub"),
            description="Stop getting messages whenever an anime's new episodes are released",
            module="normal",
            dm_able=True,
        )
    )
    registry.add(
        Command(
            execute=view_subscriptions,
            trigger="subs",
            aliases=("subscriptions", "animesubs", "showsubs", "showsubscriptions", "viewsubs", "viewsubscriptions"),
            description="Print which shows you are getting new episode notifications for",
            module="normal",
            dm_able=True,
        )
    )