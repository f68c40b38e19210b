"""Commands that manage the subreddit feeds posted into channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from guildbot.commands import (
    Command,
    CommandRegistry,
    Context,
    Message,
    Permission,
    split_arguments,
    split_message,
)
from guildbot.store import Feed

logger = logging.getLogger(__name__)

POST_TYPES = frozenset({"hot", "rising", "new"})
PIN_WORDS = frozenset({"true", "1", "positive"})
MESSAGE_LIMIT = 1900

SUBREDDIT_MISSING = (
    "Error: subreddit not found. Please start it with `/r/` or `r/`.\n\n"
    "Example: `r/subreddit`.\n\nThis is not optional."
)


def _strip_prefix(word: str, long_prefix: str, short_prefix: str) -> str:
    return word.removeprefix(long_prefix).removeprefix(short_prefix)


def _find_subreddit(words: list[str]) -> tuple[str, int]:
    """Return the subreddit name and its position; raise ValueError if absent."""
    for position, word in enumerate(words):
        if word.startswith("r/") or word.startswith("/r/"):
            name = _strip_prefix(word, "/r/", "r/")
            if name:
                return name, position
    raise ValueError("subreddit not found")


def parse_feed_arguments(words: list[str]) -> Feed:
    """Parse the words of an add-feed command into a feed without a channel.

    The first word is the command itself. Author, post type and pin come
    before the subreddit; the title is everything after it.
    """
    subreddit, position = _find_subreddit(words)
    author = ""
    post_type = "hot"
    pin = False
    for word in reversed(words[1 : position + 1]):
        if word in PIN_WORDS:
            pin = True
        if word in POST_TYPES:
            post_type = word
        if word.startswith("u/") or word.startswith("/u/"):
            author = _strip_prefix(word, "/u/", "u/")
            break
    title = " ".join(words[position + 1 :])
    return Feed(subreddit=subreddit, title=title, author=author, pin=pin, post_type=post_type)


@dataclass
class _FeedQuery:
    subreddit: str
    title: str = ""
    author: str = ""
    post_type: str = ""
    channel_id: str = ""

    def matches(self, feed: Feed) -> bool:
        if feed.subreddit != self.subreddit:
            return False
        if self.title and feed.title != self.title:
            return False
        if self.author and feed.author != self.author:
            return False
        if self.post_type and feed.post_type != self.post_type:
            return False
        if self.channel_id and feed.channel_id != self.channel_id:
            return False
        return True


def _parse_removal(context: Context, message: Message, words: list[str]) -> _FeedQuery:
    subreddit, position = _find_subreddit(words)
    query = _FeedQuery(subreddit=subreddit)
    for word in words[1:position]:
        if word.startswith("/u/") or word.startswith("u/"):
            query.author = _strip_prefix(word, "/u/", "u/")
        if word in POST_TYPES:
            query.post_type = word
        channel = context.client.find_channel(word, message.guild_id)
        if channel.id:
            query.channel_id = channel.id
    query.title = " ".join(words[position + 1 :])
    return query


def add_feed(context: Context, message: Message) -> None:
    """Save a subreddit feed for the channel the command was sent in."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix
    words = split_arguments(message.content.lower())

    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}addfeed [u/author]* [type]* [pin]* [r/subreddit] [title]*`\n\n"
            "* are optional.\n\n"
            "Type refers to the post sort filter. Valid values are `hot`, `new` and `rising`. "
            "Defaults to `hot`.\n"
            "Pin refers to whether to pin the post when the bot posts it and unpin the previous "
            "bot pin of the same subreddit. Use `true` or `false` as values.\n"
            "Title is what a post title should start with for the BOT to post it. "
            "Leave empty for all posts.\n\n"
            "For author and subreddit be sure to add the prefixes `u/` and `r/`. "
            "Does not work with hidden or quarantined subs.",
        )
        return

    try:
        feed = parse_feed_arguments(words)
    except ValueError:
        context.reply(message, SUBREDDIT_MISSING)
        return
    feed.channel_id = message.channel_id

    with context.store.lock:
        for position, existing in enumerate(data.feeds):
            if (
                existing.subreddit == feed.subreddit
                and existing.title == feed.title
                and existing.author == feed.author
                and existing.post_type == feed.post_type
                and existing.channel_id == feed.channel_id
            ):
                data.feeds[position] = feed
                break
        else:
            data.feeds.append(feed)

    context.reply(
        message,
        "Success! This reddit feed has been saved. If there are valid posts they will start "
        "appearing within an hour or two.",
    )


def remove_feed(context: Context, message: Message) -> None:
    """Remove a previously saved subreddit feed."""
    data = context.store.guild(message.guild_id)
    prefix = data.settings.prefix

    if not data.feeds:
        context.reply(message, "Error. There are no set reddit feeds.")
        return

    words = split_arguments(message.content.lower())
    if len(words) == 1:
        context.reply(
            message,
            f"Usage: `{prefix}removefeed [type]* [u/author]* [channel]* [r/subreddit] [title]*`\n\n"
            "* is optional\n\n"
            "Type refers to the post sort filter. Valid values are `hot`, `new` and `rising`. "
            "Defaults to `hot`.\n"
            "\nAuthor is the name of the post author.\n"
            "\nChannel is the ID or name of a channel from which to remove\n"
            "\nTitle is what a post title should start with or be for the BOT to post it. "
            "Leave empty for all feeds fulfilling [type] and [r/subreddit].",
        )
        return

    try:
        query = _parse_removal(context, message, words)
    except ValueError:
        context.reply(message, SUBREDDIT_MISSING)
        return

    with context.store.lock:
        target = next((feed for feed in data.feeds if query.matches(feed)), None)
        if target is not None:
            data.feeds.remove(target)

    if target is None:
        context.reply(message, "Error: No such reddit feed has been set.")
        return
    context.reply(message, "Success! This reddit feed has been removed.")


def _describe(feed: Feed) -> str:
    line = f"**r/{feed.subreddit}**"
    if feed.author:
        line += f" - **u/{feed.author}**"
    line += f" - **{feed.post_type}**"
    if feed.pin:
        line += " - **pinned**"
    line += f" - **{feed.channel_id}**"
    if feed.title:
        line += f" - **{feed.title}**"
    return line + "\n"


def view_feeds(context: Context, message: Message) -> None:
    """List every saved subreddit feed of the guild."""
    data = context.store.guild(message.guild_id)
    with context.store.lock:
        feeds = list(data.feeds)

    if not feeds:
        context.reply(message, "Error: There are no set reddit feeds.")
        return

    text = "".join(_describe(feed) for feed in feeds)
    if len(text) <= MESSAGE_LIMIT:
        context.reply(message, text)
        return

    for chunk in split_message(text, MESSAGE_LIMIT):
        try:
            context.reply(message, chunk)
        except Exception:
            logger.exception("Cannot send feed message")
            try:
                context.reply(message, "Error: Cannot send feed message.")
            except Exception:
                logger.exception("Cannot send feed error message")
                return


def register(registry: CommandRegistry) -> None:
    """Add the feed commands to a registry."""
    registry.add(
        Command(
            execute=add_feed,
            trigger="addfeed",
            aliases=("setfeed", "adfeed", "addreddit", "setreddit"),
            description="Adds a reddit feed to the channel",
            permission=Permission.MOD,
            module="reddit",
        )
    )
    registry.add(
        Command(
            execute=remove_feed,
            trigger="removefeed",
            aliases=("killfeed", "deletefeed", "removereddit", "killreddit", "deletereddit"),
            description="Removes a reddit feed",
            permission=Permission.MOD,
            module="reddit",
        )
    )
    registry.add(
        Command(
            execute=view_feeds,
            trigger="feeds",
            aliases=(
                "showreddit",
                "redditview",
                "redditshow",
                "printfeed",
                "viewfeeds",
                "showfeeds",
                "showfeed",
                "viewfeed",
                "feed",
            ),
            description="Prints all currently set Reddit feeds",
            permission=Permission.MOD,
            module="reddit",
        )
    )