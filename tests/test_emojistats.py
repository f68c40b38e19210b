from dataclasses import dataclass, field

import pytest

from guildbot.commands import CommandRegistry, Context, Message, Permission
from guildbot.emojistats import (
    REPORT_HEADER,
    count_message_emojis,
    emoji_report,
    format_emoji_line,
    merge_duplicates,
    record_reaction,
    register,
    show_emoji_stats,
)
from guildbot.store import ChannelRef, EmojiStat, Store


@dataclass
class FakeClient:
    emojis: list = field(default_factory=list)
    sent: list = field(default_factory=list)

    def send_message(self, channel_id, text):
        self.sent.append((channel_id, text))

    def delete_message(self, channel_id, message_id):
        pass

    def send_direct(self, user_id, text):
        pass

    def find_channel(self, text, guild_id):
        return ChannelRef()

    def is_privileged(self, user_id, guild_id):
        return True

    def guild_emojis(self, guild_id):
        return self.emojis


def test_count_message_emojis_counts_all_uses():
    stats = {}
    changed = count_message_emojis(stats, [("11", "kek")], "<:kek:11> hi <:kek:11>")
    assert changed is True
    assert stats["11"].message_usage == 2
    assert stats["11"].unique_message_usage == 1
    assert stats["11"].name == "kek"


def test_count_message_emojis_without_match_changes_nothing():
    stats = {}
    assert count_message_emojis(stats, [("11", "kek")], "no emojis :kek:") is False
    assert stats == {}


def test_count_message_emojis_fills_missing_name():
    stats = {"11": EmojiStat(id="11", name="", message_usage=4)}
    count_message_emojis(stats, [("11", "kek")], "<:kek:11>")
    assert stats["11"].name == "kek"
    assert stats["11"].message_usage == 5


def test_record_reaction_add_and_remove():
    stats = {}
    record_reaction(stats, "11", "kek", 1)
    record_reaction(stats, "11", "kek", 1)
    stat = record_reaction(stats, "11", "kek", -1)
    assert stat is stats["11"]
    assert stat.reactions == 1


def test_merge_duplicates_sums_same_name():
    stats = {
        "1": EmojiStat("1", "kek", 2, 1, 3),
        "2": EmojiStat("2", "kek", 5, 4, 6),
        "3": EmojiStat("3", "lol", 1, 1, 1),
    }
    merged = merge_duplicates(stats)
    assert set(merged) == {"kek", "lol"}
    assert merged["kek"].message_usage == stats["1"].message_usage + stats["2"].message_usage
    assert merged["kek"].reactions == stats["1"].reactions + stats["2"].reactions
    assert merged["lol"] == stats["3"]


def test_merge_duplicates_does_not_alter_input():
    stats = {"1": EmojiStat("1", "kek", 2, 1, 3), "2": EmojiStat("2", "kek", 5, 4, 6)}
    merge_duplicates(stats)
    assert stats["1"].message_usage == 2
    assert stats["2"].message_usage == 5


def test_format_emoji_line_columns():
    line = format_emoji_line("kek", EmojiStat("1", "kek", 12, 3, 7))
    assert line.startswith("kek ")
    assert line.index("([12])") == 30
    assert line.index("| ([3])") == 47
    assert line.index("| ([7])") == 64
    assert line.endswith("| ([7])\n")


def test_emoji_report_orders_and_filters():
    stats = {
        "1": EmojiStat("1", "low", 1, 1, 0),
        "2": EmojiStat("2", "high", 9, 1, 0),
        "3": EmojiStat("3", "gone", 50, 1, 0),
    }
    report = emoji_report(stats, ["low", "high"])
    assert len(report) == 1
    text = report[0]
    assert text.startswith(REPORT_HEADER)
    assert text.endswith("```")
    assert text.index("high") < text.index("low")
    assert "gone" not in text


def test_emoji_report_empty_has_header_only():
    assert emoji_report({}, []) == [REPORT_HEADER + "```"]


def test_emoji_report_splits_long_output():
    stats = {str(n): EmojiStat(str(n), f"emo{n}", n, 1, 0) for n in range(100)}
    report = emoji_report(stats, [stat.name for stat in stats.values()])
    assert len(report) > 1
    for chunk in report[1:]:
        assert chunk.startswith("```CSS\n")
        assert chunk.endswith("\n```")
    joined = "".join(report)
    for stat in stats.values():
        assert f"{stat.name} " in joined


def test_show_emoji_stats_replies():
    store = Store()
    store.guild("g").emoji_stats["1"] = EmojiStat("1", "kek", 3, 2, 1)
    client = FakeClient(emojis=[("1", "kek")])
    show_emoji_stats(Context(store, client), Message(".emoji", "u", channel_id="c", guild_id="g"))
    assert len(client.sent) == 1
    channel, text = client.sent[0]
    assert channel == "c"
    assert "kek" in text


@pytest.mark.parametrize("trigger", ["emoji", "emojistats", "emotes"])
def test_register(trigger):
    registry = CommandRegistry()
    register(registry)
    command = registry.find(trigger)
    assert command.execute is show_emoji_stats
    assert command.permission is Permission.MOD