"""Client for the Telegram Bot API and the webhook endpoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import requests

from goferbot.config import TelegramConfig
from goferbot.updates import Update

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"
_TIMEOUT = 30


class TelegramError(Exception):
    """Raised when a Bot API request fails."""

    def __init__(self, description: str, error_code: int | None = None) -> None:
        super().__init__(description)
        self.description = description
        self.error_code = error_code


@dataclass(frozen=True)
class WebhookInfo:
    """The current webhook state reported by Telegram."""

    url: str = ""
    has_custom_certificate: bool = False
    pending_update_count: int = 0
    last_error_date: int = 0
    last_error_message: str = ""


UpdateHandler = Callable[[Update], None]
StartResponse = Callable[[str, list[tuple[str, str]]], Any]


class Bot:
    """A Telegram bot reachable through the Bot API."""

    def __init__(
        self,
        token: str,
        webhook_url: str = "",
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.webhook_url = webhook_url
        self.session = session or requests.Session()
        self.api_url = API_URL
        self.username = ""

    @classmethod
    def connect(
        cls,
        config: TelegramConfig,
        webhook_url: str = "",
        session: requests.Session | None = None,
    ) -> Bot:
        """Create a bot and fetch its own account details."""
        bot = cls(config.bot_token, webhook_url, session)
        try:
            me = bot.request("getMe")
        except TelegramError as exc:
            raise TelegramError(f"failed to create bot API: {exc}", exc.error_code) from exc
        bot.username = me.get("username", "") if isinstance(me, dict) else ""
        logger.info("Authorized on account %s", bot.username)
        return bot

    def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Call a Bot API method and return its result."""
        url = f"{self.api_url}/bot{self.token}/{method}"
        try:
            response = self.session.post(url, json=params or {}, timeout=_TIMEOUT)
        except requests.RequestException as exc:
            raise TelegramError(f"{method} request failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise TelegramError(f"{method} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise TelegramError(f"{method} returned an unexpected response")
        if not payload.get("ok"):
            raise TelegramError(
                payload.get("description") or f"{method} failed",
                payload.get("error_code"),
            )
        return payload.get("result")

    def setup_webhook(self) -> None:
        """Register the webhook URL with Telegram."""
        try:
            self.request("setWebhook", {"url": self.webhook_url})
        except TelegramError as exc:
            raise TelegramError(
                f"webhook registration failed: {exc}", exc.error_code
            ) from exc
        info = self.webhook_info()
        if info.last_error_date:
            logger.warning("Telegram callback failed: %s", info.last_error_message)

    def webhook_info(self) -> WebhookInfo:
        """Return the current webhook state."""
        result = self.request("getWebhookInfo")
        if not isinstance(result, dict):
            raise TelegramError("getWebhookInfo returned an unexpected result")
        return WebhookInfo(
            url=result.get("url", ""),
            has_custom_certificate=bool(result.get("has_custom_certificate", False)),
            pending_update_count=result.get("pending_update_count", 0),
            last_error_date=result.get("last_error_date", 0),
            last_error_message=result.get("last_error_message", ""),
        )

    def send_message(
        self, chat_id: int, text: str, reply_to_message_id: int | None = None
    ) -> Any:
        """Send a text message, optionally as a reply."""
        params: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_to_message_id is not None:
            params["reply_to_message_id"] = reply_to_message_id
        return self.request("sendMessage", params)

    def chat_member_status(self, chat_id: int, user_id: int) -> str:
        """Return a user's status in a chat, such as "administrator"."""
        result = self.request("getChatMember", {"chat_id": chat_id, "user_id": user_id})
        if not isinstance(result, dict):
            raise TelegramError("getChatMember returned an unexpected result")
        return result.get("status", "")

    def webhook_app(
        self, update_handler: UpdateHandler
    ) -> Callable[[dict[str, Any], StartResponse], Iterable[bytes]]:
        """Return a WSGI application that decodes updates and passes them on."""

        def app(environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
            try:
                length = int(environ.get("CONTENT_LENGTH") or 0)
            except ValueError:
                length = 0
            body = environ["wsgi.input"].read(length) if length > 0 else b""
            try:
                update = Update.from_dict(json.loads(body))
            except ValueError as exc:
                logger.error("Error decoding update: %s", exc)
                start_response(
                    "400 Bad Request",
                    [
                        ("Content-Type", "text/plain; charset=utf-8"),
                        ("X-Content-Type-Options", "nosniff"),
                    ],
                )
                return [b"Bad request\n"]

            logger.debug("Received update: %r", update)
            update_handler(update)
            start_response("200 OK", [("Content-Length", "0")])
            return [b""]

        return app