"""
Domain Entities - messages, attachments and feed items.

Attachments are a tagged union keyed on the platform's ``type`` field:
only the variants the bot reads or writes get their own class, everything
else is kept as a GenericAttachment so it round-trips untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

# Attachment type discriminators used by GroupMe
REPLY_TYPE = "reply"
EMOJI_TYPE = "emoji"

# GroupMe's emoji placeholder glyph (U+FFFD REPLACEMENT CHARACTER)
EMOJI_PLACEHOLDER = "\ufffd"


@dataclass(frozen=True)
class ReplyAttachment:
    """Links a message into a reply thread"""

    reply_id: Optional[str] = None
    base_reply_id: Optional[str] = None
    type: str = field(default=REPLY_TYPE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.reply_id:
            data["reply_id"] = self.reply_id
        if self.base_reply_id:
            data["base_reply_id"] = self.base_reply_id
        return data


@dataclass(frozen=True)
class EmojiAttachment:
    """
    Maps placeholder glyphs in the message text to concrete emoji.

    ``charmap`` holds one ``(pack_id, emoji_id)`` pair per placeholder,
    in the order the placeholders appear in the text.
    """

    charmap: Tuple[Tuple[int, int], ...] = ()
    placeholder: str = EMOJI_PLACEHOLDER
    type: str = field(default=EMOJI_TYPE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "placeholder": self.placeholder,
            "charmap": [[pack_id, emoji_id] for pack_id, emoji_id in self.charmap],
        }


@dataclass(frozen=True)
class GenericAttachment:
    """Any other attachment (image, video, location, mentions, file, poll...)"""

    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.data, "type": self.type}


Attachment = Union[ReplyAttachment, EmojiAttachment, GenericAttachment]


def attachment_from_dict(data: Dict[str, Any]) -> Attachment:
    """Build the attachment variant matching the payload's ``type``"""
    attachment_type = data.get("type") or ""

    if attachment_type == REPLY_TYPE:
        return ReplyAttachment(
            reply_id=data.get("reply_id"),
            base_reply_id=data.get("base_reply_id"),
        )

    if attachment_type == EMOJI_TYPE:
        raw_charmap = data.get("charmap")
        if not isinstance(raw_charmap, list):
            raw_charmap = []
        charmap = tuple(
            (entry[0], entry[1]) for entry in raw_charmap if _is_charmap_entry(entry)
        )
        return EmojiAttachment(
            charmap=charmap,
            placeholder=data.get("placeholder") or EMOJI_PLACEHOLDER,
        )

    extra = {key: value for key, value in data.items() if key != "type"}
    return GenericAttachment(type=attachment_type, data=extra)


@dataclass(frozen=True)
class InboundMessage:
    """
    A message delivered to the bot's callback URL.

    Group messages carry a ``group_id``; direct messages carry a ``chat_id``
    instead and are never acted on.
    """

    id: Optional[str] = None
    group_id: Optional[str] = None
    user_id: Optional[str] = None
    text: Optional[str] = None
    chat_id: Optional[str] = None
    name: Optional[str] = None
    sender_type: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "InboundMessage":
        """Parse a GroupMe callback body"""
        raw_attachments = payload.get("attachments")
        if not isinstance(raw_attachments, list):
            raw_attachments = []
        attachments = tuple(
            attachment_from_dict(item) for item in raw_attachments if isinstance(item, dict)
        )
        return cls(
            id=_optional_str(payload.get("id")),
            group_id=_optional_str(payload.get("group_id")),
            user_id=_optional_str(payload.get("user_id")),
            text=payload.get("text") if isinstance(payload.get("text"), str) else None,
            chat_id=_optional_str(payload.get("chat_id")),
            name=payload.get("name"),
            sender_type=payload.get("sender_type"),
            attachments=attachments,
        )

    @property
    def is_group_message(self) -> bool:
        return bool(self.group_id)

    @property
    def is_actionable(self) -> bool:
        """Only non-empty group messages are considered by the rules"""
        return bool(self.text) and self.is_group_message

    def existing_reply(self) -> Optional[ReplyAttachment]:
        """First reply attachment on the message, if any"""
        for attachment in self.attachments:
            if isinstance(attachment, ReplyAttachment):
                return attachment
        return None


@dataclass(frozen=True)
class ReplyDirective:
    """What to send back: ``count`` copies of one emoji, optionally threaded"""

    pack_id: int
    emoji_id: int
    count: int
    delay_ms: int = 0
    reply_to_id: Optional[str] = None
    base_reply_id: Optional[str] = None


@dataclass(frozen=True)
class OutgoingPost:
    """Body of a bot post request"""

    bot_id: str
    text: str
    attachments: Tuple[Attachment, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"bot_id": self.bot_id, "text": self.text}
        if self.attachments:
            payload["attachments"] = [attachment.to_dict() for attachment in self.attachments]
        return payload


@dataclass(frozen=True)
class FeedItem:
    """A single search result from the feed service"""

    id: str
    text: Optional[str]
    author_handle: str
    created_at: datetime
    retweet_count: int = 0
    retweeted_original: Optional["FeedItem"] = None

    @property
    def url(self) -> str:
        return f"https://twitter.com/{self.author_handle}/status/{self.id}"


@dataclass
class BotRegistration:
    """
    A feed bot living in one group.

    ``most_recent_item_id`` is the search cursor; only the relay job moves it.
    """

    bot_id: str
    user_id: str
    group_id: str
    search_term: str
    most_recent_item_id: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class GroupInfo:
    id: str
    name: str
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class CreatedBot:
    bot_id: str
    name: str


@dataclass(frozen=True)
class RegistrationDetails:
    """A registration joined with the name of its group (when still visible)"""

    bot_id: str
    group_id: str
    search_term: str
    most_recent_item_id: Optional[str] = None
    group_name: Optional[str] = None

    @classmethod
    def combine(
        cls,
        registrations: List[BotRegistration],
        groups: List[GroupInfo]
    ) -> List["RegistrationDetails"]:
        group_names = {group.id: group.name for group in groups}
        return [
            cls(
                bot_id=registration.bot_id,
                group_id=registration.group_id,
                search_term=registration.search_term,
                most_recent_item_id=registration.most_recent_item_id,
                group_name=group_names.get(registration.group_id),
            )
            for registration in registrations
        ]


def _is_charmap_entry(entry: Any) -> bool:
    # [pack_id, emoji_id]; anything else is dropped rather than rejected
    return (
        isinstance(entry, (list, tuple))
        and len(entry) == 2
        and all(isinstance(part, int) and not isinstance(part, bool) for part in entry)
    )


def _optional_str(value: Any) -> Optional[str]:
    # GroupMe sends most ids as strings, but be lenient with numbers
    if value is None or value == "":
        return None
    return str(value)
