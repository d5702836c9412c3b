"""Telegram update objects decoded from webhook payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class User:
    """A Telegram user."""

    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str = ""
    username: str = ""


@dataclass(frozen=True)
class Chat:
    """A Telegram chat."""

    id: int
    type: str = ""
    title: str = ""


@dataclass(frozen=True)
class MessageEntity:
    """A special span of message text, such as a command or mention."""

    type: str
    offset: int = 0
    length: int = 0


@dataclass
class Message:
    """A Telegram message."""

    message_id: int
    chat: Chat
    from_user: User | None = None
    date: int = 0
    text: str = ""
    caption: str = ""
    entities: list[MessageEntity] = field(default_factory=list)
    reply_to_message: Message | None = None
    photo: list[Any] | None = None
    document: dict[str, Any] | None = None
    audio: dict[str, Any] | None = None
    video: dict[str, Any] | None = None
    voice: dict[str, Any] | None = None
    sticker: dict[str, Any] | None = None

    def is_command(self) -> bool:
        """True when the message starts with a bot command."""
        if not self.entities:
            return False
        first = self.entities[0]
        return first.offset == 0 and first.type == "bot_command"

    def _command_with_at(self) -> str:
        if not self.is_command():
            return ""
        return self.text[1 : self.entities[0].length]

    def command(self) -> str:
        """The command name without the slash and any @botname suffix."""
        return self._command_with_at().split("@", 1)[0]

    def command_arguments(self) -> str:
        """Everything after the command and the following space."""
        if not self.is_command():
            return ""
        length = self.entities[0].length
        if len(self.text) == length:
            return ""
        return self.text[length + 1 :]


@dataclass(frozen=True)
class CallbackQuery:
    """A press of an inline keyboard button."""

    id: str
    from_user: User | None = None
    message: Message | None = None
    data: str = ""


@dataclass(frozen=True)
class Update:
    """One incoming update."""

    update_id: int = 0
    message: Message | None = None
    callback_query: CallbackQuery | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Update:
        """Build an update from its decoded JSON form."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("update must be a JSON object")
        message = _object(data, "message")
        callback = _object(data, "callback_query")
        return cls(
            update_id=_value(data, "update_id", int, 0),
            message=_parse_message(message) if message is not None else None,
            callback_query=_parse_callback(callback) if callback is not None else None,
        )


def _value(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise ValueError(f"field {key!r} must be of type {kind.__name__}")
    return value


def _object(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    return _value(data, key, dict, None)


def _parse_user(data: dict[str, Any]) -> User:
    return User(
        id=_value(data, "id", int, 0),
        is_bot=_value(data, "is_bot", bool, False),
        first_name=_value(data, "first_name", str, ""),
        last_name=_value(data, "last_name", str, ""),
        username=_value(data, "username", str, ""),
    )


def _parse_chat(data: dict[str, Any]) -> Chat:
    return Chat(
        id=_value(data, "id", int, 0),
        type=_value(data, "type", str, ""),
        title=_value(data, "title", str, ""),
    )


def _parse_entity(data: Any) -> MessageEntity:
    if not isinstance(data, dict):
        raise ValueError("message entity must be a JSON object")
    return MessageEntity(
        type=_value(data, "type", str, ""),
        offset=_value(data, "offset", int, 0),
        length=_value(data, "length", int, 0),
    )


def _parse_message(data: dict[str, Any]) -> Message:
    chat = _object(data, "chat")
    if chat is None:
        raise ValueError("message has no chat")
    sender = _object(data, "from")
    reply = _object(data, "reply_to_message")
    return Message(
        message_id=_value(data, "message_id", int, 0),
        chat=_parse_chat(chat),
        from_user=_parse_user(sender) if sender is not None else None,
        date=_value(data, "date", int, 0),
        text=_value(data, "text", str, ""),
        caption=_value(data, "caption", str, ""),
        entities=[_parse_entity(item) for item in _value(data, "entities", list, [])],
        reply_to_message=_parse_message(reply) if reply is not None else None,
        photo=_value(data, "photo", list, None),
        document=_object(data, "document"),
        audio=_object(data, "audio"),
        video=_object(data, "video"),
        voice=_object(data, "voice"),
        sticker=_object(data, "sticker"),
    )


def _parse_callback(data: dict[str, Any]) -> CallbackQuery:
    sender = _object(data, "from")
    message = _object(data, "message")
    return CallbackQuery(
        id=_value(data, "id", str, ""),
        from_user=_parse_user(sender) if sender is not None else None,
        message=_parse_message(message) if message is not None else None,
        data=_value(data, "data", str, ""),
    )