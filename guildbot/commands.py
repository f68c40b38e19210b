"""Command registry and dispatch of incoming messages."""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from guildbot.store import ChannelRef, GuildSettings, Store

logger = logging.getLogger(__name__)

DM_PREFIX = "."
VOTE_TRIGGERS = frozenset({"votecategory", "startvote"})


class Permission(enum.Enum):
    USER = 0
    MOD = 1
    ADMIN = 2


@dataclass
class Message:
    """An incoming chat message."""

    content: str
    author_id: str
    channel_id: str = ""
    guild_id: str = ""
    id: str = ""
    author_is_bot: bool = False
    author_name: str = ""
    author_discriminator: str = ""
    mention_everyone: bool = False
    mention_roles: list[str] = field(default_factory=list)


class Client(Protocol):
    """The chat service the bot talks to."""

    def send_message(self, channel_id: str, text: str) -> None: ...

    def delete_message(self, channel_id: str, message_id: str) -> None: ...

    def send_direct(self, user_id: str, text: str) -> None: ...

    def find_channel(self, text: str, guild_id: str) -> ChannelRef: ...

    def is_privileged(self, user_id: str, guild_id: str) -> bool: ...


@dataclass
class Context:
    """What a command needs to do its work."""

    store: Store
    client: Client

    def settings_for(self, message: Message) -> GuildSettings:
        if message.guild_id:
            return self.store.guild(message.guild_id).settings
        return GuildSettings()

    def reply(self, message: Message, text: str) -> None:
        self.client.send_message(message.channel_id, text)


@dataclass
class Command:
    execute: Callable[[Context, Message], None]
    trigger: str
    aliases: tuple[str, ...] = ()
    description: str = ""
    delete_after: bool = False
    permission: Permission = Permission.USER
    module: str = ""
    dm_able: bool = False


def split_arguments(content: str, maxsplit: int = -1) -> list[str]:
    """Collapse double spaces once and split on single spaces."""
    return content.replace("  ", " ").split(" ", maxsplit)


def sanitize_mentions(
    content: str, mention_everyone: bool = False, mention_roles: tuple[str, ...] | list[str] = ()
) -> str:
    """Defuse @here, @everyone and role pings with a zero-width space."""
    content = content.replace("@here", "@\u200bhere")
    if mention_everyone:
        content = content.replace("@everyone", "@\u200beveryone")
    for role_id in mention_roles:
        content = content.replace(f"<@&{role_id}>", f"<@\u200b&{role_id}>")
    return content


def split_message(text: str, limit: int = 1900) -> list[str]:
    """Split text into chunks of at most ``limit`` characters, on line ends where possible."""
    if limit <= 0:
        raise ValueError("limit must be positive")
    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


class CommandRegistry:
    """Commands by trigger and alias, and the rules for running them."""

    def __init__(self) -> None:
        self.commands: dict[str, Command] = {}
        self.aliases: dict[str, str] = {}

    def add(self, command: Command) -> None:
        self.commands[command.trigger] = command
        for alias in command.aliases:
            self.aliases[alias] = command.trigger
        logger.info(
            "Added command %s | %d aliases | %s module",
            command.trigger,
            len(command.aliases),
            command.module,
        )

    def find(self, trigger: str) -> Optional[Command]:
        command = self.commands.get(trigger)
        if command is None and trigger in self.aliases:
            command = self.commands.get(self.aliases[trigger])
        return command

    def handle(self, context: Context, message: Message) -> Optional[Command]:
        """Run the command a message asks for; return it, or None if nothing ran."""
        if message.author_is_bot or not message.author_id or not message.content:
            return None
        try:
            if message.guild_id:
                return self._handle_guild(context, message)
            return self._handle_direct(context, message)
        except Exception:
            logger.exception("Recovery in handle with message: %s", message.content)
            return None

    @staticmethod
    def _trigger(content: str, prefix: str) -> Optional[str]:
        if len(content) <= len(prefix) or not content.startswith(prefix):
            return None
        return content.split(" ")[0][len(prefix):].lower()

    def _handle_direct(self, context: Context, message: Message) -> Optional[Command]:
        trigger = self._trigger(message.content, DM_PREFIX)
        if trigger is None:
            return None
        command = self.find(trigger)
        if command is None or not command.dm_able:
            return None
        command.execute(context, message)
        return command

    def _handle_guild(self, context: Context, message: Message) -> Optional[Command]:
        settings = context.store.guild(message.guild_id).settings
        trigger = self._trigger(message.content, settings.prefix)
        if trigger is None:
            return None
        command = self.find(trigger)
        if command is None:
            return None
        if command.trigger in VOTE_TRIGGERS and not settings.vote_module:
            return None
        if command.module == "waifus" and not settings.waifu_module:
            return None
        if command.module == "reacts" and not settings.reacts_module:
            return None
        if command.permission is not Permission.USER or settings.mod_only:
            if not context.client.is_privileged(message.author_id, message.guild_id):
                return None

        cleaned = dataclasses.replace(
            message,
            content=sanitize_mentions(
                message.content, message.mention_everyone, message.mention_roles
            ),
        )
        command.execute(context, cleaned)
        if command.delete_after:
            context.client.delete_message(message.channel_id, message.id)
        return command