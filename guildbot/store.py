"""In-memory state shared by the bot's commands."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelRef:
    """A channel remembered by name and id; the default value means "not set"."""

    name: str = ""
    id: str = ""

    @property
    def is_set(self) -> bool:
        return bool(self.name or self.id)


@dataclass(frozen=True)
class RoleRef:
    """A role remembered by name, id and position."""

    name: str = ""
    id: str = ""
    position: int = 0

    @property
    def is_set(self) -> bool:
        return bool(self.name or self.id or self.position)


@dataclass
class GuildSettings:
    """Per-guild configuration."""

    prefix: str = "."
    bot_log: ChannelRef = field(default_factory=ChannelRef)
    command_roles: list[RoleRef] = field(default_factory=list)
    muted_role: RoleRef = field(default_factory=RoleRef)
    opt_in_under: RoleRef = field(default_factory=RoleRef)
    opt_in_above: RoleRef = field(default_factory=RoleRef)
    vote_channel_category: ChannelRef = field(default_factory=ChannelRef)
    vote_module: bool = False
    waifu_module: bool = False
    reacts_module: bool = False
    whitelist_file_filter: bool = False
    mod_only: bool = False
    ping_message: str = ""


@dataclass
class Feed:
    """A subreddit feed posted into a channel."""

    subreddit: str
    title: str = ""
    author: str = ""
    pin: bool = False
    post_type: str = "hot"
    channel_id: str = ""


@dataclass(frozen=True)
class PhraseFilter:
    """A regular expression whose matches get messages removed."""

    pattern: str


@dataclass
class MessageRequirement:
    """A phrase that messages must contain, optionally bound to a channel."""

    phrase: str
    requirement_type: str = "soft"
    channel_id: str = ""
    last_user_id: str = ""


@dataclass
class EmojiStat:
    """Usage counters of one guild emoji."""

    id: str = ""
    name: str = ""
    message_usage: int = 0
    unique_message_usage: int = 0
    reactions: int = 0


@dataclass
class ShowSub:
    """One show a user (or guild) is subscribed to."""

    show: str
    notified: bool = False
    guild: bool = False


@dataclass
class ScheduledShow:
    """One entry of the weekly anime schedule."""

    name: str
    air_time: str
    episode: str = ""
    key: str = ""
    delayed: str = ""


@dataclass
class MemberRecord:
    """What is remembered about a guild member."""

    id: str = ""
    username: str = ""
    discrim: str = ""
    nickname: str = ""
    past_usernames: list[str] = field(default_factory=list)
    past_nicknames: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mutes: list[str] = field(default_factory=list)
    kicks: list[str] = field(default_factory=list)
    bans: list[str] = field(default_factory=list)
    timestamps: list[object] = field(default_factory=list)
    verified_date: str = ""
    unban_date: str = ""
    unmute_date: str = ""
    suspected_spambot: bool = False
    waifu: str = ""


@dataclass
class GuildData:
    """Everything stored for one guild."""

    settings: GuildSettings = field(default_factory=GuildSettings)
    autoposts: dict[str, ChannelRef] = field(default_factory=dict)
    members: dict[str, MemberRecord] = field(default_factory=dict)
    feeds: list[Feed] = field(default_factory=list)
    filters: list[PhraseFilter] = field(default_factory=list)
    requirements: list[MessageRequirement] = field(default_factory=list)
    emoji_stats: dict[str, EmojiStat] = field(default_factory=dict)

    def autopost(self, name: str) -> ChannelRef:
        return self.autoposts.get(name, ChannelRef())

    def set_autopost(self, name: str, channel: ChannelRef) -> None:
        if channel.is_set:
            self.autoposts[name] = channel
        else:
            self.autoposts.pop(name, None)


def is_disposable_member(member: MemberRecord) -> bool:
    """Tell whether a member record holds nothing worth keeping."""
    if not member.id or not member.discrim or not member.username:
        return True
    if (
        member.warnings
        or member.mutes
        or member.kicks
        or member.bans
        or member.verified_date
        or member.unban_date
        or member.suspected_spambot
        or member.timestamps
        or member.unmute_date
        or member.waifu
    ):
        return False
    if len(member.past_nicknames) > 3 or len(member.past_usernames) > 3:
        return False
    return True


class Store:
    """All guild data plus the shared anime schedule and subscriptions."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.guilds: dict[str, GuildData] = {}
        self.anime_schedule: dict[int, list[ScheduledShow]] = {}
        self.anime_subs: dict[str, list[ShowSub]] = {}

    def guild(self, guild_id: str) -> GuildData:
        """Return the data of a guild, creating it on first use."""
        with self.lock:
            return self.guilds.setdefault(guild_id, GuildData())

    def clean_members(self) -> int:
        """Drop member records with nothing worth keeping; return how many went."""
        removed = 0
        with self.lock:
            for data in self.guilds.values():
                disposable = [
                    member_id
                    for member_id, member in data.members.items()
                    if is_disposable_member(member)
                ]
                for member_id in disposable:
                    del data.members[member_id]
                removed += len(disposable)
        logger.info("Cleaned guilds")
        return removed