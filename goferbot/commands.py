"""Replies to bot commands and inline keyboard callbacks."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from goferbot.database import Database, DatabaseError, UserRecord
from goferbot.messages import MessageService, TemplateNotFoundError
from goferbot.telegram import Bot, TelegramError
from goferbot.updates import CallbackQuery, Message

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.21"
TOP_USERS_LIMIT = 10
DAILY_STATS_DAYS = 7

_ADMIN_STATUSES = frozenset({"administrator", "creator"})

_FALLBACK_TEXTS = {
    "start": "Assalomu alaykum! GoferUz Go" "lang botiga xush kelibsiz 👋",
    "rules": "GoferUz hamjamiyati qoidalari...",
    "about": "Bu bot Go dasturlash tilida yaratilgan...",
    "group": "Go dasturlash tili bo'yicha guruhlar va hamjamiyatlar...",
    "roadmap": "Go dasturlash tilini o'rganish uchun yo'l xaritasi...",
    "useful": "Go dasturlash tili bo'yicha foydali ma'lumotlar...",
    "latest": "Go 1.21 - Eng so'nggi Go versiyasi...",
}
_HELP_FALLBACK = "Mavjud komandalar ro'yxati..."
_WARN_FALLBACK = (
    "⚠️ Ogohlantirish ⚠️\n\n"
    "Iltimos, faqat Go dasturlash tiliga oid mavzularda suhbatlashing..."
)
_NO_REPLY_FALLBACK = "Bu buyruqni ishlatish uchun biror xabarga javob sifatida yuboring."
_STATUS_FALLBACK = "Foydalanuvchi statusini tekshirishda xatolik yuz berdi."
_PERMISSION_FALLBACK = "Bu buyruqni faqat adminlar ishlatishi mumkin."
_DATA_FALLBACK = "Foydalanuvchilar statistikasini olishda xatolik yuz berdi."

_CALLBACK_TEXTS = {
    "get_information": "Here is some information about our services.",
    "start_action": "Action started successfully!",
}


def _as_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def format_stats(
    message_stats: Mapping[str, int] | None,
    daily_stats: Iterable[Mapping[str, Any]],
    top_users: Iterable[UserRecord],
) -> str:
    """Build the text of the statistics report."""
    parts = ["📊 Bot Statistikasi:\n\n"]

    if message_stats is not None:
        parts.append(f"📝 Umumiy xabarlar: {message_stats.get('total_messages', 0)}\n")
        parts.append(f"👥 Noyob foydalanuvchilar: {message_stats.get('unique_users', 0)}\n")
        parts.append(f"🔍 Buyruqlar: {message_stats.get('command_count', 0)}\n")
        parts.append(f"💬 Oddiy xabarlar: {message_stats.get('regular_msg_count', 0)}\n")
        parts.append(f"👤 Shaxsiy xabarlar: {message_stats.get('private_messages', 0)}\n")
        parts.append(f"👪 Guruh xabarlar: {message_stats.get('group_messages', 0)}\n\n")

    days = list(daily_stats)
    if days:
        parts.append("📅 So'nggi kunlar statistikasi:\n")
        for stat in days:
            day = stat.get("date")
            day = day if isinstance(day, str) else ""
            parts.append(
                f"{day}: 👥 {_as_int(stat.get('active_users'))} faol, "
                f"🆕 {_as_int(stat.get('new_users'))} yangi, "
                f"📝 {_as_int(stat.get('total_messages'))} xabar, "
                f"🔍 {_as_int(stat.get('total_commands'))} buyruq\n"
            )
        parts.append("\n")

    parts.append("🏆 Eng faol foydalanuvchilar:\n")
    users = list(top_users)
    if not users:
        parts.append("Hozircha foydalanuvchilar yo'q\n")
    for rank, user in enumerate(users, start=1):
        name = user.username or user.first_name or "Anonymous"
        parts.append(
            f"{rank}. @{name} - {user.message_count} xabar, {user.command_count} buyruq\n"
        )
    return "".join(parts)


class CommandProcessor:
    """Answers bot commands and callback queries."""

    def __init__(self, bot: Bot, database: Database, messages: MessageService) -> None:
        self.bot = bot
        self.database = database
        self.messages = messages
        self._handlers: dict[str, Callable[[Message], str | None]] = {
            "help": self._help,
            "version": self._version,
            "warn": self._warn,
            "stats": self._stats,
        }

    def handle(self, message: Message) -> str | None:
        """Answer a command message and return the reply text.

        Unknown commands are ignored and give None.
        """
        command = message.command()
        if command in _FALLBACK_TEXTS:
            return self._simple(message, command)
        handler = self._handlers.get(command)
        if handler is None:
            return None
        return handler(message)

    def handle_callback(self, callback: CallbackQuery) -> str | None:
        """Answer the press of an inline keyboard button; return the reply text."""
        if callback.message is None:
            logger.warning("Callback %s has no message", callback.id)
            return None
        text = _CALLBACK_TEXTS.get(callback.data, f"Unknown action: {callback.data}")
        try:
            self.bot.send_message(callback.message.chat.id, text)
        except TelegramError as exc:
            logger.error("Error sending callback message: %s", exc)
        return text

    def is_admin(self, chat_id: int, user_id: int) -> bool:
        """True when the user administers or created the chat."""
        return self.bot.chat_member_status(chat_id, user_id) in _ADMIN_STATUSES

    # Helpers

    def _send(self, chat_id: int, text: str, reply_to: int | None = None) -> str:
        try:
            self.bot.send_message(chat_id, text, reply_to)
        except TelegramError as exc:
            logger.error("Error sending command response: %s", exc)
        return text

    def _template_field(self, command: str, key: str, fallback: str) -> str:
        try:
            template = self.messages.command_template(command)
        except TemplateNotFoundError:
            return fallback
        text = template.get(key)
        return text if isinstance(text, str) and text else fallback

    def _sender_is_admin(self, message: Message) -> bool:
        if message.from_user is None:
            raise TelegramError("message has no sender")
        return self.is_admin(message.chat.id, message.from_user.id)

    def _refusal(self, message: Message, command: str) -> str | None:
        """Send and return a refusal when the sender may not run the command."""
        try:
            admin = self._sender_is_admin(message)
        except TelegramError as exc:
            logger.error("Error checking admin status: %s", exc)
            text = self._template_field(command, "error_status", _STATUS_FALLBACK)
            return self._send(message.chat.id, text)
        if not admin and message.chat.type != "private":
            text = self._template_field(command, "error_permission", _PERMISSION_FALLBACK)
            return self._send(message.chat.id, text)
        return None

    # Commands

    def _simple(self, message: Message, command: str) -> str:
        try:
            text = self.messages.command_text(command)
        except TemplateNotFoundError as exc:
            logger.error("Error getting %s command text: %s", command, exc)
            text = _FALLBACK_TEXTS[command]
        return self._send(message.chat.id, text)

    def _help(self, message: Message) -> str:
        try:
            admin = self._sender_is_admin(message)
        except TelegramError as exc:
            logger.error("Error checking admin status: %s", exc)
            admin = False
        try:
            text = self.messages.message_for_admin(
                "help", admin or message.chat.type == "private"
            )
        except TemplateNotFoundError as exc:
            logger.error("Error getting help command text: %s", exc)
            text = _HELP_FALLBACK
        return self._send(message.chat.id, text)

    def _version(self, message: Message) -> str:
        version = message.command_arguments() or DEFAULT_VERSION
        try:
            text = self.messages.version_text(version)
        except TemplateNotFoundError as exc:
            logger.error("Error getting version command text: %s", exc)
            text = f'Kechirasiz, "{version}" versiyasi haqida ma\'lumot mavjud emas.'
        return self._send(message.chat.id, text)

    def _warn(self, message: Message) -> str:
        replied = message.reply_to_message
        if replied is None:
            text = self._template_field("warn", "error_no_reply", _NO_REPLY_FALLBACK)
            return self._send(message.chat.id, text)

        refusal = self._refusal(message, "warn")
        if refusal is not None:
            return refusal

        try:
            text = self.messages.command_text("warn")
        except TemplateNotFoundError as exc:
            logger.error("Error getting warn command text: %s", exc)
            text = _WARN_FALLBACK
        sent = self._send(message.chat.id, text, replied.message_id)

        sender = message.from_user
        logger.info(
            "Admin %s (ID: %d) issued a warning in chat %d in response to message %d",
            sender.username if sender else "",
            sender.id if sender else 0,
            message.chat.id,
            replied.message_id,
        )
        return sent

    def _stats(self, message: Message) -> str:
        refusal = self._refusal(message, "stats")
        if refusal is not None:
            return refusal

        try:
            self.database.update_daily_stats()
        except DatabaseError as exc:
            logger.error("Error updating daily stats: %s", exc)

        message_stats: dict[str, int] | None
        try:
            message_stats = self.database.message_stats()
        except DatabaseError as exc:
            logger.error("Error getting message stats: %s", exc)
            message_stats = None

        try:
            top_users = self.database.top_users(TOP_USERS_LIMIT)
        except DatabaseError as exc:
            logger.error("Error getting top users: %s", exc)
            text = self._template_field("stats", "error_data", _DATA_FALLBACK)
            return self._send(message.chat.id, text)

        try:
            daily = self.database.daily_stats(DAILY_STATS_DAYS)
        except DatabaseError as exc:
            logger.error("Error getting daily stats: %s", exc)
            daily = []

        return self._send(message.chat.id, format_stats(message_stats, daily, top_users))