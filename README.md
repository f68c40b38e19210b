# guildbot

The command layer of a chat guild bot. It does not connect to a chat service
itself. You pass in a client object that sends and deletes messages. The
package decides what to send, and it keeps guild data in memory in a `Store`.

## Modules

### `guildbot.commands`

- `CommandRegistry` maps triggers and aliases to `Command` objects.
  - `add(command)` registers a command.
  - `find(trigger)` looks a command up by trigger or alias.
  - `handle(context, message)` runs the command a message asks for. It
    returns that `Command`, or `None` if nothing ran.
- In a guild, `handle` takes these steps:
  - It checks the guild's prefix.
  - It skips `votecategory` and `startvote` when the vote module is off.
  - It skips `waifus` and `reacts` commands when their module is off.
  - Non-`Permission.USER` commands, and every command in mod-only mode,
    require `client.is_privileged(...)`.
  - It defuses `@here`, `@everyone` and role pings before the command runs.
  - If the command has `delete_after`, it deletes the triggering message.
- In direct messages the prefix is always `.`, and only commands with
  `dm_able=True` run.
- Exceptions raised by a command are logged and swallowed.
- Helpers:
  - `split_arguments(content, maxsplit)` collapses double spaces and splits
    on single spaces.
  - `sanitize_mentions(content, mention_everyone, mention_roles)`.
  - `split_message(text, limit=1900)` splits text into chunks, on line ends
    where possible.

### `guildbot.store`

- `Store` holds one `GuildData` per guild. Use `store.guild(guild_id)`, which
  creates the guild's data on first use.
- `Store` also holds the shared `anime_schedule` and `anime_subs`:
  - `anime_schedule` maps a day to a list of `ScheduledShow`. Day 0 is Sunday.
  - `anime_subs` maps a user id (or a guild id) to a list of `ShowSub`.
- `Store.lock` is a re-entrant lock.
- `GuildData` holds:
  - `settings` (`GuildSettings`)
  - `autoposts` (`ChannelRef` by name)
  - `members` (`MemberRecord`)
  - `feeds` (`Feed`)
  - `filters` (`PhraseFilter`)
  - `requirements` (`MessageRequirement`)
  - `emoji_stats` (`EmojiStat`)
- `Store.clean_members()` drops member records that hold nothing worth
  keeping, as judged by `is_disposable_member`. It returns how many it
  removed.

### `guildbot.autopost`

These commands show, set or turn off an autopost channel:

| Command | What it sets |
| --- | --- |
| `dailystats` | daily stats channel |
| `dailyschedule` | daily anime schedule channel |
| `newepisodes` | new airing episodes channel |

- `disable` turns a channel off.
- `dailyschedule` and `newepisodes` also accept `0` and `false` to turn the
  channel off.

### `guildbot.subscriptions`

- `sub`, `unsub` and `subs` add, remove and list the author's show
  subscriptions. Shows come from `store.anime_schedule`.
- `notify_subscribers(context, now)` sends a notice for each of today's shows
  that has aired and is not delayed. It returns how many notices it sent.
  - Users get the notice by direct message.
  - A subscription with `guild=True` goes to that guild's `newepisodes`
    autopost channel.
- `reset_subscriptions(context, now)` marks today's subscriptions as notified
  exactly when their show has aired.
- `parse_air_time("3:04 PM")` and `has_aired(now, air_time)` are the time
  helpers.

### `guildbot.feeds`

- The `addfeed`, `removefeed` and `feeds` commands add, remove and list
  subreddit feed settings.
- `parse_feed_arguments(words)` parses the add command. The optional
  author, type and pin come before `r/subreddit`, and the title comes
  after it.

### `guildbot.emojistats`

- `count_message_emojis(stats, emojis, content)` counts emoji uses in a
  message.
- `record_reaction(stats, emoji_id, emoji_name, delta)` counts reactions.
- `merge_duplicates(stats)` merges the stats of emojis that share a name.
- `emoji_report(stats, guild_emoji_names)` and `format_emoji_line` build the
  aligned table.
- The `emoji` command posts the table.

### `guildbot.filters` and `guildbot.requirements`

- `check_message(context, message)` deletes the message and returns `True`
  if it matches a regex filter, or if a filter matches the nicknames of
  members it mentions. When something matched, it also posts a notice to the
  bot log and sends the author a direct message.
- `check_message` also deletes a message that breaks a message requirement
  (`check_requirements`):
  - A `hard` requirement removes every message without its phrase.
  - A `soft` requirement removes such a message only when it comes from
    someone other than the last user who said the phrase.
- `is_filtered_reaction(filters, emoji_api_name)` tells whether a reaction
  should be removed.
- `find_filtered_phrases(filters, text, mentions)` returns every match.
- Filter commands: `addfilter`, `removefilter` and `filters`.
- Requirement commands: `mrequire`, `unmrequire` and `mrequirements`.
  `parse_requirement_arguments` parses `mrequire [channel]* [type]* [phrase]`.

## Wiring it up

```python
from guildbot.commands import CommandRegistry, Context
from guildbot.store import Store
from guildbot import autopost, subscriptions, feeds, emojistats, filters, requirements

registry = CommandRegistry()
for module in (autopost, subscriptions, feeds, emojistats, filters, requirements):
    module.register(registry)

context = Context(store=Store(), client=my_client)

# for every incoming guildbot.commands.Message:
if not filters.check_message(context, message):
    registry.handle(context, message)
```

`my_client` must provide the methods of the `guildbot.commands.Client`
protocol:

- `send_message(channel_id, text)`
- `delete_message(channel_id, message_id)`
- `send_direct(user_id, text)`
- `find_channel(text, guild_id)`, which returns a `ChannelRef` with an empty
  id when no channel matches
- `is_privileged(user_id, guild_id)`

The `emoji` command also calls `guild_emojis(guild_id)`, which must return
`(id, name)` pairs.

## What it does not do

- **No chat connection.** It does not listen for events. Your code feeds it
  messages and calls `check_message`, `is_filtered_reaction`,
  `count_message_emojis` and `record_reaction` itself.
- **No storage on disk.** All data lives in the `Store` and is lost when the
  process ends.
- **No timers.** Call `notify_subscribers` periodically and
  `reset_subscriptions` at startup.
- **No schedule fetching.** It does not download the anime schedule. Fill
  `store.anime_schedule` yourself.
- **No posting.** It does not fetch or post reddit feeds, daily stats or daily
  schedules. It only stores which feeds and channels are configured.

## Running the tests

```
pip install -e .[test]
pytest
```