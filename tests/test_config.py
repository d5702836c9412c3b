import pytest

from goferbot.config import (
    Config,
    ConfigError,
    DatabaseConfig,
    ServerConfig,
    TelegramConfig,
    load,
)

SAMPLE = """
[server]
webhook_url = "https://example.com"
port = 8080

[telegram]
bot_token = "token"

[postgres]
host = "localhost"
port = 5432
user = "user"
password = "password"
dbname = "gofer"
sslmode = "disable"
"""


def _write(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_reads_all_sections(tmp_path):
    cfg = load(_write(tmp_path, SAMPLE))
    assert cfg.server == ServerConfig(webhook_url="https://example.com", port=8080)
    assert cfg.telegram == TelegramConfig(bot_token="token")
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.user == "user"
    assert cfg.database.dbname == "gofer"
    assert cfg.database.sslmode == "disable"


def test_dsn_format():
    password = "password"
    db = DatabaseConfig(
        host="localhost",
        port=5432,
        user="user",
        password=password,
        dbname="gofer",
        sslmode="disable",
    )
    assert db.dsn == (
        "host=localhost port=5432 user=user password=password "
        "dbname=gofer sslmode=disable"
    )


def test_missing_sections_use_defaults(tmp_path):
    cfg = load(_write(tmp_path, "[telegram]\nbot_token = \"token\"\n"))
    assert cfg.server == ServerConfig()
    assert cfg.database == DatabaseConfig()
    assert cfg == Config(telegram=TelegramConfig(bot_token="token"))


def test_database_section_is_preferred(tmp_path):
    text = '[database]\npath = "data.sqlite"\n[postgres]\nhost = "other"\n'
    cfg = load(_write(tmp_path, text))
    assert cfg.database.path == "data.sqlite"
    assert cfg.database.host == ""


def test_unknown_keys_are_ignored(tmp_path):
    cfg = load(_write(tmp_path, "[server]\nport = 1\nextra = true\n"))
    assert cfg.server.port == 1


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="failed to read config file"):
        load(tmp_path / "absent.toml")


def test_invalid_toml_raises(tmp_path):
    with pytest.raises(ConfigError, match="failed to parse config file"):
        load(_write(tmp_path, "[server\nport = 1"))


@pytest.mark.parametrize(
    "text",
    [
        '[server]\nport = "8080"\n',
        "[server]\nport = true\n",
        "[telegram]\nbot_token = 5\n",
        'server = "x"\n',
    ],
)
def test_wrong_types_raise(tmp_path, text):
    with pytest.raises(ConfigError):
        load(_write(tmp_path, text))