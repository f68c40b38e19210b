import re

import pytest

from guildbot.commands import CommandRegistry, Context, Message
from guildbot.filters import (
    add_filter,
    check_message,
    find_filtered_phrases,
    is_filtered_reaction,
    register,
    remove_filter,
    view_filters,
)
from guildbot.store import (
    ChannelRef,
    MemberRecord,
    MessageRequirement,
    PhraseFilter,
    Store,
)


class FakeClient:
    def __init__(self, privileged=()):
        self.sent = []
        self.deleted = []
        self.direct = []
        self.privileged = set(privileged)

    def send_message(self, channel_id, text):
        self.sent.append((channel_id, text))

    def delete_message(self, channel_id, message_id):
        self.deleted.append((channel_id, message_id))

    def send_direct(self, user_id, text):
        self.direct.append((user_id, text))

    def find_channel(self, text, guild_id):
        return ChannelRef()

    def is_privileged(self, user_id, guild_id):
        return user_id in self.privileged


def make_context(privileged=()):
    return Context(store=Store(), client=FakeClient(privileged))


def msg(content, author="u1"):
    return Message(content=content, author_id=author, channel_id="c1", guild_id="g1", id="m1")


def test_find_filtered_phrases_uses_lowered_text():
    found = find_filtered_phrases([PhraseFilter("bad")], "This is BAD and bad", "")
    assert found == ["bad", "bad"]


def test_find_filtered_phrases_includes_mentions():
    found = find_filtered_phrases([PhraseFilter("bad")], "hello", " badname")
    assert found == ["bad"]


def test_find_filtered_phrases_returns_whole_match_with_groups():
    assert find_filtered_phrases([PhraseFilter("b(a)d")], "bad", "") == ["bad"]


def test_find_filtered_phrases_invalid_pattern_raises():
    with pytest.raises(re.error):
        find_filtered_phrases([PhraseFilter("(")], "anything", "")


def test_reaction_filter_strips_emoji_markup():
    assert is_filtered_reaction([PhraseFilter("<:kappa:123>")], "kappa:123")
    assert is_filtered_reaction([PhraseFilter("<a:dance:9>")], "dance:9")
    assert not is_filtered_reaction([PhraseFilter("<:kappa:123>")], "smile:5")


def test_add_filter_strips_arrows_and_stores():
    context = make_context()
    add_filter(context, msg(".addfilter <:kappa:1>"))
    assert context.store.guild("g1").filters == [PhraseFilter(":kappa:1")]
    assert context.client.sent[-1] == ("c1", "`:kappa:1` has been added to the filter list.")


def test_add_filter_without_phrase_shows_usage():
    context = make_context()
    add_filter(context, msg(".addfilter"))
    assert context.store.guild("g1").filters == []
    assert context.client.sent[-1][1].startswith("Usage: `.filter [phrase]`")


def test_remove_filter_without_filters_errors():
    context = make_context()
    remove_filter(context, msg(".unfilter bad"))
    assert context.client.sent == [("c1", "Error: There are no filters.")]


def test_add_then_remove_round_trip():
    context = make_context()
    add_filter(context, msg(".addfilter bad"))
    remove_filter(context, msg(".unfilter bad"))
    assert context.store.guild("g1").filters == []
    assert context.client.sent[-1][1] == "`bad` has been removed from the filter list."


def test_view_filters_lists_patterns():
    context = make_context()
    context.store.guild("g1").filters.extend([PhraseFilter("one"), PhraseFilter("two")])
    view_filters(context, msg(".filters"))
    assert context.client.sent == [("c1", "**one**\n**two**")]


def test_check_message_removes_and_dms_unique_phrases():
    context = make_context()
    context.store.guild("g1").filters.append(PhraseFilter("bad"))
    removed = check_message(context, msg("bad bad words"))
    assert removed is True
    assert context.client.deleted == [("c1", "m1")]
    assert context.client.direct == [
        ("u1", "Your message `bad bad words` was removed for using: _bad_ \n\n")
    ]


def test_check_message_leaves_privileged_users_alone():
    context = make_context(privileged={"u1"})
    context.store.guild("g1").filters.append(PhraseFilter("bad"))
    assert check_message(context, msg("bad")) is False
    assert context.client.deleted == []


def test_check_message_clean_message_kept():
    context = make_context()
    context.store.guild("g1").filters.append(PhraseFilter("bad"))
    assert check_message(context, msg("hello there")) is False
    assert context.client.deleted == []


def test_check_message_matches_mentioned_nickname():
    context = make_context()
    data = context.store.guild("g1")
    data.filters.append(PhraseFilter("rude"))
    data.members["42"] = MemberRecord(id="42", username="x", discrim="1", nickname="RudeName")
    assert check_message(context, msg("hi <@!42>")) is True
    assert context.client.deleted == [("c1", "m1")]


def test_check_message_hard_requirement_removes_without_dm():
    context = make_context()
    context.store.guild("g1").requirements.append(
        MessageRequirement(phrase="hello", requirement_type="hard")
    )
    assert check_message(context, msg("goodbye")) is True
    assert context.client.deleted == [("c1", "m1")]
    assert context.client.direct == []


def test_register_adds_aliases():
    registry = CommandRegistry()
    register(registry)
    assert registry.find("unfilter").trigger == "removefilter"
    assert registry.find("setfilter").execute is add_filter
    assert registry.find("viewfilters").execute is view_filters