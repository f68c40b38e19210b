import pytest

from guildbot.autopost import register, set_daily_schedule, set_daily_stats, set_new_episodes
from guildbot.commands import CommandRegistry, Context, Message, Permission
from guildbot.store import ChannelRef, Store


class FakeClient:
    def __init__(self):
        self.sent = []
        self.channels = {"#stats": ChannelRef("stats", "100")}

    def send_message(self, channel_id, text):
        self.sent.append(text)

    def delete_message(self, channel_id, message_id):
        pass

    def send_direct(self, user_id, text):
        self.sent.append(text)

    def find_channel(self, text, guild_id):
        return self.channels.get(text, ChannelRef())

    def is_privileged(self, user_id, guild_id):
        return True


@pytest.fixture
def env():
    client = FakeClient()
    return Context(Store(), client), client


def _msg(content):
    return Message(content=content, author_id="u", guild_id="g", channel_id="c")


def test_daily_stats_unset_reports_error(env):
    ctx, client = env
    set_daily_stats(ctx, _msg(".dailystats"))
    assert client.sent[-1].startswith("Error: Autopost Daily Stats channel is currently not set.")


def test_daily_stats_set_and_show(env):
    ctx, client = env
    set_daily_stats(ctx, _msg(".dailystats #stats"))
    assert ctx.store.guild("g").autopost("dailystats") == ChannelRef("stats", "100")
    assert client.sent[-1] == "Success! New Autopost Daily Stats channel is: `stats - 100`"
    set_daily_stats(ctx, _msg(".dailystats"))
    assert "`stats - 100`" in client.sent[-1]


def test_daily_stats_disable(env):
    ctx, client = env
    set_daily_stats(ctx, _msg(".dailystats #stats"))
    set_daily_stats(ctx, _msg(".dailystats disable"))
    assert ctx.store.guild("g").autopost("dailystats").is_set is False
    assert client.sent[-1] == "Success! Autopost Daily Stats has been disabled!"


def test_daily_stats_too_many_words(env):
    ctx, client = env
    set_daily_stats(ctx, _msg(".dailystats a b"))
    assert client.sent[-1] == "Usage: `.dailystats [channel]`"
    assert ctx.store.guild("g").autoposts == {}


def test_daily_schedule_zero_disables(env):
    ctx, client = env
    set_daily_schedule(ctx, _msg(".dailyschedule #stats"))
    assert ctx.store.guild("g").autopost("dailyschedule").id == "100"
    set_daily_schedule(ctx, _msg(".dailyschedule 0"))
    assert ctx.store.guild("g").autopost("dailyschedule").is_set is False
    assert client.sent[-1].startswith("Success! Autopost Daily Anime Schedule has been disabled!")


def test_new_episodes_unknown_channel_disables(env):
    ctx, client = env
    set_new_episodes(ctx, _msg(".newepisodes #nowhere"))
    assert ctx.store.guild("g").autopost("newepisodes").is_set is False
    assert client.sent[-1].startswith("Success! Autopost for new airing anime episodes has been disabled!")


def test_new_episodes_set_uses_guild_prefix(env):
    ctx, client = env
    ctx.store.guild("g").settings.prefix = "!"
    set_new_episodes(ctx, _msg("!newepisodes #stats"))
    set_new_episodes(ctx, _msg("!newepisodes"))
    assert "`!newepisodes disable`" in client.sent[-1]


def test_register_through_registry(env):
    ctx, client = env
    registry = CommandRegistry()
    register(registry)
    assert registry.find("episode").trigger == "newepisodes"
    assert registry.find("daystat").permission is Permission.MOD
    registry.handle(ctx, _msg(".setdailystats #stats"))
    assert ctx.store.guild("g").autopost("dailystats") == ChannelRef("stats", "100")