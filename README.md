# goferbot

Building blocks for a Telegram bot serving a Go programming community: a
small Bot API client with a WSGI webhook endpoint, decoding of incoming
updates, reply texts taken from JSON templates, answers to the bot's
commands, and a SQLite store of users, messages and daily statistics.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `goferbot.config` — `load(path)` reads a TOML file into a `Config` with
  `server` (`ServerConfig`: `webhook_url`, `port`), `telegram`
  (`TelegramConfig`: `bot_token`) and `database` (`DatabaseConfig`). The
  database settings are read from a `[database]` table, or from `[postgres]`
  when there is no `[database]`; `path` names the SQLite file (default
  `bot.db`), and `dsn` renders the host/port/user/password/dbname/sslmode
  fields as a `key=value` string. Unreadable files, bad TOML and values of
  the wrong type raise `ConfigError`.
- `goferbot.messages` — `MessageService` picks reply texts.
  `MessageService.load(directory)` reads `commands.json` and `keywords.json`
  (default directory `templates/messages`). Missing templates raise
  `TemplateNotFoundError`.
- `goferbot.updates` — `Update.from_dict` turns a decoded webhook payload into
  `Update`, `Message`, `User`, `Chat`, `MessageEntity` and `CallbackQuery`
  objects. `Message.is_command()`, `command()` and `command_arguments()`
  read the leading bot command.
- `goferbot.telegram` — `Bot` calls the Bot API with `requests`:
  `connect`, `request`, `setup_webhook`, `webhook_info`, `send_message`,
  `chat_member_status`. `Bot.webhook_app(handler)` returns a WSGI
  application that decodes each POSTed update and passes it to `handler`,
  answering `400 Bad request` to bodies it cannot decode. API failures raise
  `TelegramError`.
- `goferbot.database` — `Database(path)` opens (and creates the tables of) a
  SQLite file. It stores `UserRecord`s and `MessageRecord`s, counts per-user
  commands and messages, and computes `message_stats`, `top_users` and
  per-day `daily_stats`. Failures raise `DatabaseError`.
- `goferbot.commands` — `CommandProcessor(bot, database, messages)` answers
  commands with `handle(message)` and inline keyboard presses with
  `handle_callback(callback)`, sending the reply and returning its text.
  `format_stats` builds the statistics report.

## Templates

- `commands.json` — one entry per command, each with a `text` and optionally
  an `admin_text` (appended to `/help` for administrators and in private
  chats), and for `warn`/`stats` the error texts `error_no_reply`,
  `error_status`, `error_permission` and `error_data`. The `version` entry
  holds a `versions` table keyed by Go version, with a `default` entry whose
  text may contain `${version}`.
- `keywords.json` — categories, each with a list of `keywords` and the
  `text` to answer with, plus a `default` entry used when nothing matches.
  `MessageService.keyword_response(text)` does the matching, case-insensitively.

## Commands answered by `CommandProcessor`

| Command    | Reply                                                         |
|------------|---------------------------------------------------------------|
| `/start`   | Welcome message                                               |
| `/help`    | List of commands, with `admin_text` for admins and in private |
| `/rules`   | Community rules                                               |
| `/about`   | About the bot                                                 |
| `/group`   | Go groups and communities                                     |
| `/roadmap` | Learning roadmap                                              |
| `/useful`  | Useful resources                                              |
| `/latest`  | Latest Go release                                             |
| `/version` | Notes on a Go version, `1.21` when none is given              |
| `/warn`    | Admins (or private chats), as a reply: warns that message     |
| `/stats`   | Admins (or private chats): totals, last 7 days, top 10 users  |

Other commands are ignored. Callback data `get_information` and
`start_action` get fixed replies; anything else gets `Unknown action: ...`.

## Example

```python
from goferbot.commands import CommandProcessor
from goferbot.config import load
from goferbot.database import Database
from goferbot.messages import MessageService
from goferbot.telegram import Bot

config = load("config.toml")
webhook_url = f"{config.server.webhook_url}/bot/{config.telegram.bot_token}"
bot = Bot.connect(config.telegram, webhook_url)
bot.setup_webhook()

database = Database(config.database.path)
commands = CommandProcessor(bot, database, MessageService.load())

def on_update(update):
    if update.callback_query is not None:
        commands.handle_callback(update.callback_query)
    elif update.message is not None and update.message.is_command():
        commands.handle(update.message)

app = bot.webhook_app(on_update)  # serve with any WSGI server
```

with a `config.toml` such as:

```toml
[server]
webhook_url = "https://bot.example.com"
port = 8080

[telegram]
bot_token = "token"

[database]
path = "bot.db"
```

## What the package does not do

There is no command to start the bot and no HTTP server of its own: the
caller serves `Bot.webhook_app` and handles shutdown. Nothing ties the
pieces together for ordinary, non-command messages either: recording users
and messages in the `Database`, deciding whether to answer in a group, and
sending `keyword_response` replies are left to the caller.