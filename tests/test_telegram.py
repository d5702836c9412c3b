import io
import json
import logging

import pytest
import requests
import responses

from goferbot.config import TelegramConfig
from goferbot.telegram import Bot, TelegramError, WebhookInfo

BASE = "https://api.telegram.org/bottoken"
WEBHOOK = "https://example.com/bot/token"


def _ok(result):
    return {"ok": True, "result": result}


def _body(rsps, index=0):
    return json.loads(rsps.calls[index].request.body)


@pytest.fixture
def api():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_connect_reads_username(api):
    api.add(
        responses.POST,
        f"{BASE}/getMe",
        json=_ok({"id": 1, "is_bot": True, "username": "gofer_bot"}),
    )
    bot = Bot.connect(TelegramConfig(bot_token="token"), WEBHOOK)
    assert bot.username == "gofer_bot"
    assert bot.webhook_url == WEBHOOK


def test_connect_failure(api):
    api.add(
        responses.POST,
        f"{BASE}/getMe",
        json={"ok": False, "error_code": 401, "description": "Unauthorized"},
        status=401,
    )
    with pytest.raises(TelegramError, match="failed to create bot API") as info:
        Bot.connect(TelegramConfig(bot_token="token"))
    assert info.value.error_code == 401


def test_request_network_error(api):
    api.add(responses.POST, f"{BASE}/getMe", body=requests.ConnectionError("down"))
    with pytest.raises(TelegramError):
        Bot("token").request("getMe")


def test_request_invalid_json(api):
    api.add(responses.POST, f"{BASE}/getMe", body="not json")
    with pytest.raises(TelegramError):
        Bot("token").request("getMe")


def test_send_message_with_reply(api):
    api.add(responses.POST, f"{BASE}/sendMessage", json=_ok({"message_id": 11}))
    result = Bot("token").send_message(5, "hi", reply_to_message_id=9)
    assert result == {"message_id": 11}
    assert _body(api) == {"chat_id": 5, "text": "hi", "reply_to_message_id": 9}


def test_send_message_without_reply(api):
    api.add(responses.POST, f"{BASE}/sendMessage", json=_ok({"message_id": 1}))
    result = Bot("token").send_message(5, "hi")
    assert result == {"message_id": 1}
    assert _body(api) == {"chat_id": 5, "text": "hi"}


def test_chat_member_status(api):
    api.add(
        responses.POST, f"{BASE}/getChatMember", json=_ok({"status": "administrator"})
    )
    assert Bot("token").chat_member_status(-100, 42) == "administrator"
    assert _body(api) == {"chat_id": -100, "user_id": 42}


def test_webhook_info(api):
    api.add(
        responses.POST,
        f"{BASE}/getWebhookInfo",
        json=_ok({"url": WEBHOOK, "pending_update_count": 2}),
    )
    info = Bot("token").webhook_info()
    assert info == WebhookInfo(url=WEBHOOK, pending_update_count=2)


def test_setup_webhook_registers_url_and_logs_errors(api, caplog):
    api.add(responses.POST, f"{BASE}/setWebhook", json=_ok(True))
    api.add(
        responses.POST,
        f"{BASE}/getWebhookInfo",
        json=_ok({"url": WEBHOOK, "last_error_date": 5, "last_error_message": "boom"}),
    )
    with caplog.at_level(logging.WARNING):
        Bot("token", WEBHOOK).setup_webhook()
    assert _body(api, 0) == {"url": WEBHOOK}
    assert api.calls[1].request.url.endswith("/getWebhookInfo")
    assert "Telegram callback failed: boom" in caplog.text


def test_setup_webhook_failure(api):
    api.add(
        responses.POST,
        f"{BASE}/setWebhook",
        json={"ok": False, "error_code": 400, "description": "bad url"},
        status=400,
    )
    with pytest.raises(TelegramError, match="webhook registration failed"):
        Bot("token", "nope").setup_webhook()


def _call(app, body):
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = headers

    environ = {"wsgi.input": io.BytesIO(body), "CONTENT_LENGTH": str(len(body))}
    chunks = app(environ, start_response)
    return captured["status"], b"".join(chunks)


def test_webhook_app_dispatches_update():
    received = []
    app = Bot("token").webhook_app(received.append)
    payload = {
        "update_id": 3,
        "message": {"message_id": 1, "chat": {"id": 8, "type": "private"}, "text": "hi"},
    }
    status, body = _call(app, json.dumps(payload).encode())
    assert status.startswith("200")
    assert body == b""
    assert [u.message.text for u in received] == ["hi"]
    assert received[0].update_id == 3


@pytest.mark.parametrize("body", [b"{not json", b"", b'{"update_id": "x"}'])
def test_webhook_app_rejects_bad_body(body):
    received = []
    app = Bot("token").webhook_app(received.append)
    status, text = _call(app, body)
    assert status.startswith("400")
    assert text == b"Bad request\n"
    assert received == []