from guildbot.store import (
    ChannelRef,
    MemberRecord,
    Store,
    is_disposable_member,
)


def _member(**kwargs):
    base = dict(id="1", username="name", discrim="0001")
    base.update(kwargs)
    return MemberRecord(**base)


def test_guild_is_created_once():
    store = Store()
    first = store.guild("g")
    first.settings.prefix = "!"
    assert store.guild("g") is first
    assert store.guild("g").settings.prefix == "!"


def test_default_settings_prefix():
    assert Store().guild("g").settings.prefix == "."


def test_channel_ref_unset_by_default():
    assert ChannelRef().is_set is False
    assert ChannelRef("general", "5").is_set is True


def test_autopost_round_trip_and_clear():
    data = Store().guild("g")
    data.set_autopost("dailystats", ChannelRef("stats", "7"))
    assert data.autopost("dailystats") == ChannelRef("stats", "7")
    data.set_autopost("dailystats", ChannelRef())
    assert data.autopost("dailystats") == ChannelRef()
    assert "dailystats" not in data.autoposts


def test_missing_identity_is_disposable():
    assert is_disposable_member(_member(id="")) is True
    assert is_disposable_member(_member(discrim="")) is True
    assert is_disposable_member(_member(username="")) is True


def test_plain_member_is_disposable():
    assert is_disposable_member(_member()) is True


def test_moderation_history_is_kept():
    assert is_disposable_member(_member(warnings=["spam"])) is False
    assert is_disposable_member(_member(unban_date="_Never_")) is False
    assert is_disposable_member(_member(suspected_spambot=True)) is False
    assert is_disposable_member(_member(waifu="someone")) is False


def test_long_name_history_is_kept():
    assert is_disposable_member(_member(past_nicknames=list("abcd"))) is False
    assert is_disposable_member(_member(past_usernames=list("abcd"))) is False
    assert is_disposable_member(_member(past_nicknames=list("abc"))) is True


def test_clean_members_removes_only_disposable():
    store = Store()
    a = store.guild("a")
    b = store.guild("b")
    a.members["1"] = _member()
    a.members["2"] = _member(id="2", bans=["reason"])
    b.members["3"] = _member(id="")
    removed = store.clean_members()
    assert removed == 2
    assert list(a.members) == ["2"]
    assert b.members == {}