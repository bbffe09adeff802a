"""AdvertConfig: one generation of the persisted advert document.

Field aliases match the keys of the JSON document on disk. Every model here is
frozen: a reload builds a new generation and swaps the reference, it never
edits a live one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

# Destination kinds understood inside an ad message set.
CHAT = "Chat"
CENTER = "Center"
DESTINATIONS = (CHAT, CENTER)

FALLBACK_SERVER_NAME = "CS2Server"


class MessageType(Enum):
    """Where a welcome message is rendered."""

    CHAT = 0
    CENTER = 1
    CENTER_HTML = 2


_MESSAGE_TYPE_NAMES = {
    "chat": MessageType.CHAT,
    "center": MessageType.CENTER,
    "centerhtml": MessageType.CENTER_HTML,
    "center_html": MessageType.CENTER_HTML,
}


class WelcomeMessage(BaseModel):
    """One-shot greeting sent to a participant shortly after they fully connect."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_type: MessageType = Field(default=MessageType.CHAT, alias="MessageType")
    message: str = Field(alias="Message")
    display_delay: float = Field(default=2.0, ge=0.0, alias="DisplayDelay")

    @field_validator("message_type", mode="before")
    @classmethod
    def _parse_message_type(cls, value: object) -> object:
        """Accept the enum value (0/1/2) or its name ("Chat", "CenterHtml")."""
        if isinstance(value, str):
            key = value.strip().lower()
            if key in _MESSAGE_TYPE_NAMES:
                return _MESSAGE_TYPE_NAMES[key]
        return value

    @field_serializer("message_type")
    def _dump_message_type(self, value: MessageType) -> str:
        return {
            MessageType.CHAT: "Chat",
            MessageType.CENTER: "Center",
            MessageType.CENTER_HTML: "CenterHtml",
        }[value]


class Advertisement(BaseModel):
    """One independently timed rotation of message sets (an ad group).

    Each message set maps a destination kind (``Chat``/``Center``) to a raw
    template. The rotation cursor is runtime state owned by the scheduler.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    interval: float = Field(gt=0.0, alias="Interval")
    messages: list[dict[str, str]] = Field(min_length=1, alias="Messages")


class AdvertConfig(BaseModel):
    """The complete advert document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    print_to_center_html: bool = False
    html_center_duration: float = Field(default=0.0, ge=0.0)
    show_html_when_dead: bool = False
    welcome_message: WelcomeMessage | None = None
    ads: list[Advertisement] = Field(default_factory=list)
    server_name: str | None = None
    server_subname: str | None = None
    default_lang: str | None = None
    language_messages: dict[str, dict[str, str]] | None = None
    maps_name: dict[str, str] | None = None
    version: int = Field(default=1, alias="Version")

    @field_validator(
        "print_to_center_html", "html_center_duration", "show_html_when_dead", "ads",
        mode="before",
    )
    @classmethod
    def _null_means_default(cls, value: object, info: ValidationInfo) -> object:
        """An explicit ``null`` reads as the field's default (off, zero, no ads)."""
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @property
    def effective_server_name(self) -> str:
        return self.server_name or FALLBACK_SERVER_NAME

    @property
    def effective_server_subname(self) -> str:
        return self.server_subname or ""

    @property
    def has_localization(self) -> bool:
        return self.language_messages is not None


@dataclass(frozen=True)
class ConfigGeneration:
    """A loaded document plus the process-level overrides in force when it was built."""

    config: AdvertConfig
    number: int = 0
    ip_override: str = ""


def make_default_config() -> AdvertConfig:
    """The documented default generation written when no usable document exists."""
    return AdvertConfig(
        print_to_center_html=False,
        html_center_duration=5.0,
        show_html_when_dead=False,
        welcome_message=WelcomeMessage(
            message_type=MessageType.CHAT,
            message="Welcome to {SERVERNAME} | {SERVERSUBNAME}, {BLUE}{PLAYERNAME}!",
            display_delay=5.0,
        ),
        ads=[
            Advertisement(
                interval=60.0,
                messages=[
                    {
                        CHAT: "Try out {SERVERSUBNAME} - currently on {MAP}",
                        CENTER: "Thanks for playing on {SERVERNAME}!",
                    }
                ],
            )
        ],
        server_name="ImperfectGamers",
        server_subname="24/7 Surf Easy",
        default_lang="US",
        language_messages={"map_name": {"US": "Map is {MAP}!"}},
        maps_name={"surf_kitsune": "Surf Kitsune"},
        version=1,
    )
