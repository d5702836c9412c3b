"""Message templates for commands and keyword replies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_KEYWORD_RESPONSE = "Savolingiz uchun rahmat!"


class TemplateNotFoundError(LookupError):
    """Raised when a template or one of its fields is missing."""


def _read_json_object(path: Path) -> dict[str, Any]:
    data = json.loads(path.resolve().read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


class MessageService:
    """Looks up reply texts from command and keyword templates."""

    def __init__(
        self,
        command_templates: dict[str, Any] | None = None,
        keyword_templates: dict[str, Any] | None = None,
    ) -> None:
        self.command_templates = dict(command_templates or {})
        self.keyword_templates = dict(keyword_templates or {})

    @classmethod
    def load(cls, directory: str | Path = "templates/messages") -> MessageService:
        """Load commands.json and keywords.json from a directory."""
        base = Path(directory)
        return cls(
            _read_json_object(base / "commands.json"),
            _read_json_object(base / "keywords.json"),
        )

    def command_template(self, command: str) -> dict[str, Any]:
        """Return the template of a command."""
        template = self.command_templates.get(command)
        if isinstance(template, dict):
            return template
        raise TemplateNotFoundError(f"command template not found: {command}")

    def command_text(self, command: str) -> str:
        """Return the text of a command."""
        text = self.command_template(command).get("text")
        if isinstance(text, str):
            return text
        raise TemplateNotFoundError(f"text not found for command: {command}")

    def version_text(self, version: str) -> str:
        """Return the text describing a Go version, or the default text."""
        versions = self.command_template("version").get("versions")
        if not isinstance(versions, dict):
            raise TemplateNotFoundError("versions not found in template")

        entry = versions.get(version)
        if isinstance(entry, dict) and isinstance(entry.get("text"), str):
            return entry["text"]

        default = versions.get("default")
        if isinstance(default, dict) and isinstance(default.get("text"), str):
            return default["text"].replace("${version}", version)

        raise TemplateNotFoundError(f"text not found for version: {version}")

    def keyword_response(self, text: str) -> str:
        """Return the reply of the first category whose keyword occurs in text."""
        lowered = text.lower()
        for category, data in self.keyword_templates.items():
            if category == "default" or not isinstance(data, dict):
                continue
            keywords = data.get("keywords")
            if not isinstance(keywords, list):
                continue
            response = data.get("text")
            for keyword in keywords:
                if not isinstance(keyword, str):
                    continue
                if keyword.lower() in lowered and isinstance(response, str):
                    return response

        default = self.keyword_templates.get("default")
        if isinstance(default, dict) and isinstance(default.get("text"), str):
            return default["text"]
        return DEFAULT_KEYWORD_RESPONSE

    def message_for_admin(self, command: str, is_admin: bool) -> str:
        """Return a command's text, with its admin text appended for admins."""
        text = self.command_text(command)
        if is_admin:
            admin_text = self.command_template(command).get("admin_text")
            if isinstance(admin_text, str):
                text += admin_text
        return text