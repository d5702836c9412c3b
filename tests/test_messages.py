import json

import pytest

from goferbot.messages import MessageService, TemplateNotFoundError

COMMANDS = {
    "start": {"text": "Welcome"},
    "help": {"text": "Commands", "admin_text": " and admin commands"},
    "broken": {"admin_text": "only admin"},
    "plain": "not a template",
    "version": {
        "versions": {
            "1.21": {"text": "Go 1.21 notes"},
            "default": {"text": "No notes for ${version} (${version})"},
        }
    },
}

KEYWORDS = {
    "default": {"text": "Default reply"},
    "concurrency": {"keywords": ["Goroutine", "channel"], "text": "About concurrency"},
    "no_text": {"keywords": ["struct"]},
    "bad": "ignored",
}


@pytest.fixture
def service():
    return MessageService(COMMANDS, KEYWORDS)


def test_command_text(service):
    assert service.command_text("start") == "Welcome"


def test_command_template_missing(service):
    with pytest.raises(TemplateNotFoundError, match="command template not found: nope"):
        service.command_template("nope")


def test_command_template_not_a_mapping(service):
    with pytest.raises(TemplateNotFoundError):
        service.command_template("plain")


def test_command_text_missing_text(service):
    with pytest.raises(TemplateNotFoundError, match="text not found for command: broken"):
        service.command_text("broken")


def test_version_text_known(service):
    assert service.version_text("1.21") == "Go 1.21 notes"


def test_version_text_default_substitutes_every_placeholder(service):
    assert service.version_text("1.5") == "No notes for 1.5 (1.5)"


def test_version_text_without_versions():
    svc = MessageService({"version": {"text": "x"}}, {})
    with pytest.raises(TemplateNotFoundError, match="versions not found"):
        svc.version_text("1.21")


def test_version_text_without_default():
    svc = MessageService({"version": {"versions": {}}}, {})
    with pytest.raises(TemplateNotFoundError, match="text not found for version: 2.0"):
        svc.version_text("2.0")


def test_keyword_response_matches_case_insensitively(service):
    assert service.keyword_response("How do GOROUTINES work?") == "About concurrency"
    assert service.keyword_response("a Channel question") == "About concurrency"


def test_keyword_without_text_falls_back_to_default(service):
    assert service.keyword_response("struct embedding") == "Default reply"


def test_keyword_response_default(service):
    assert service.keyword_response("hello") == "Default reply"


def test_keyword_response_builtin_default():
    assert MessageService({}, {}).keyword_response("hello") == "Savolingiz uchun rahmat!"


def test_message_for_admin(service):
    assert service.message_for_admin("help", True) == "Commands and admin commands"
    assert service.message_for_admin("help", False) == "Commands"
    assert service.message_for_admin("start", True) == "Welcome"


def test_message_for_admin_missing_command(service):
    with pytest.raises(TemplateNotFoundError):
        service.message_for_admin("nope", True)


def test_load_from_directory(tmp_path):
    (tmp_path / "commands.json").write_text(json.dumps(COMMANDS), encoding="utf-8")
    (tmp_path / "keywords.json").write_text(json.dumps(KEYWORDS), encoding="utf-8")
    svc = MessageService.load(tmp_path)
    assert svc.command_text("start") == "Welcome"
    assert svc.keyword_response("channel") == "About concurrency"


def test_load_missing_file(tmp_path):
    (tmp_path / "commands.json").write_text("{}", encoding="utf-8")
    with pytest.raises(OSError):
        MessageService.load(tmp_path)


def test_load_rejects_non_object(tmp_path):
    (tmp_path / "commands.json").write_text("[]", encoding="utf-8")
    (tmp_path / "keywords.json").write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        MessageService.load(tmp_path)