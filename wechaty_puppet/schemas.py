"""Payload types, enumerations and query filters of the puppet interface."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import IntEnum
from typing import Any, ClassVar


def _go_json(obj: Any) -> str:
    """Serialise compactly, escaping HTML-sensitive characters."""
    text = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


class _JsonPayload:
    """Mixin mapping dataclass fields to camelCase JSON keys."""

    _JSON_KEYS: ClassVar[dict[str, str]] = {}

    def to_json(self) -> str:
        return _go_json({key: getattr(self, attr) for attr, key in self._JSON_KEYS.items()})

    @classmethod
    def from_json(cls, text: str):
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object for {cls.__name__}")
        by_key = {key.lower(): attr for attr, key in cls._JSON_KEYS.items()}
        kwargs = {}
        for key, value in data.items():
            attr = by_key.get(key.lower())
            if attr is not None and value is not None:
                kwargs[attr] = str(value)
        return cls(**kwargs)


# contacts

class ContactGender(IntEnum):
    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


class ContactType(IntEnum):
    UNKNOWN = 0
    PERSONAL = 1
    OFFICIAL = 2


@dataclass
class ContactQueryFilter:
    """Searches by the first non-empty field."""

    alias: str = ""
    alias_regexp: re.Pattern | None = None
    id: str = ""
    name: str = ""
    name_regexp: re.Pattern | None = None
    weixin: str = ""


@dataclass
class ContactPayload:
    id: str = ""
    gender: ContactGender = ContactGender.UNKNOWN
    type: ContactType = ContactType.UNKNOWN
    name: str = ""
    avatar: str = ""
    address: str = ""
    alias: str = ""
    city: str = ""
    friend: bool = False
    province: str = ""
    signature: str = ""
    star: bool = False
    weixin: str = ""


ContactPayloadFilter = Callable[[ContactPayload], bool]


# events

class ScanStatus(IntEnum):
    UNKNOWN = 0
    CANCEL = 1
    WAITING = 2
    SCANNED = 3
    CONFIRMED = 4
    TIMEOUT = 5


class PayloadType(IntEnum):
    UNKNOWN = 0
    MESSAGE = 1
    CONTACT = 2
    ROOM = 3
    ROOM_MEMBER = 4
    FRIENDSHIP = 5


@dataclass
class BaseEventPayload:
    data: str = ""


EventDongPayload = BaseEventPayload
EventErrorPayload = BaseEventPayload
EventReadyPayload = BaseEventPayload
EventResetPayload = BaseEventPayload
EventHeartbeatPayload = BaseEventPayload


@dataclass
class EventFriendshipPayload:
    friendship_id: str = ""


@dataclass
class EventLoginPayload:
    contact_id: str = ""


@dataclass
class EventLogoutPayload:
    contact_id: str = ""
    data: str = ""


@dataclass
class EventMessagePayload:
    message_id: str = ""


@dataclass
class EventRoomInvitePayload:
    room_invitation_id: str = ""


@dataclass
class EventRoomJoinPayload:
    invitee_id_list: list[str] = field(default_factory=list)
    inviter_id: str = ""
    room_id: str = ""
    timestamp: int = 0


@dataclass
class EventRoomLeavePayload:
    removee_id_list: list[str] = field(default_factory=list)
    remover_id: str = ""
    room_id: str = ""
    timestamp: int = 0


@dataclass
class EventRoomTopicPayload:
    changer_id: str = ""
    new_topic: str = ""
    old_topic: str = ""
    room_id: str = ""
    timestamp: int = 0


@dataclass
class EventScanPayload(BaseEventPayload):
    status: ScanStatus = ScanStatus.UNKNOWN
    qr_code: str = ""


@dataclass
class EventDirtyPayload:
    payload_type: PayloadType = PayloadType.UNKNOWN
    payload_id: str = ""


# friendship

class FriendshipType(IntEnum):
    UNKNOWN = 0
    CONFIRM = 1
    RECEIVE = 2
    VERIFY = 3


class FriendshipSceneType(IntEnum):
    UNKNOWN = 0
    QQ = 1
    EMAIL = 2
    WEIXIN = 3
    QQTBD = 12
    ROOM = 14
    PHONE = 15
    CARD = 17
    LOCATION = 18
    BOTTLE = 25
    SHAKING = 29
    QRCODE = 30


@dataclass
class FriendshipPayload:
    id: str = ""
    contact_id: str = ""
    hello: str = ""
    timestamp: int = 0
    type: FriendshipType = FriendshipType.UNKNOWN
    scene: FriendshipSceneType = FriendshipSceneType.UNKNOWN
    stranger: str = ""
    ticket: str = ""


@dataclass
class FriendshipSearchCondition:
    """Searches by the first non-empty field."""

    phone: str = ""
    weixin: str = ""


# images

class ImageType(IntEnum):
    UNKNOWN = 0
    THUMBNAIL = 1
    HD = 2
    ARTWORK = 3


# messages

class MessageType(IntEnum):
    UNKNOWN = 0
    ATTACHMENT = 1
    AUDIO = 2
    CONTACT = 3
    CHAT_HISTORY = 4
    EMOTICON = 5
    IMAGE = 6
    TEXT = 7
    LOCATION = 8
    MINI_PROGRAM = 9
    GROUP_NOTE = 10
    TRANSFER = 11
    RED_ENVELOPE = 12
    RECALLED = 13
    URL = 14
    VIDEO = 15


class WeChatAppMessageType(IntEnum):
    TEXT = 1
    IMG = 2
    AUDIO = 3
    VIDEO = 4
    URL = 5
    ATTACH = 6
    OPEN = 7
    EMOJI = 8
    VOICE_REMIND = 9
    SCAN_GOOD = 10
    GOOD = 13
    EMOTION = 15
    CARD_TICKET = 16
    REALTIME_SHARE_LOCATION = 17
    CHAT_HISTORY = 19
    MINI_PROGRAM = 33
    TRANSFERS = 2000
    RED_ENVELOPES = 2001
    READER_TYPE = 100001


class WeChatMessageType(IntEnum):
    TEXT = 1
    IMAGE = 3
    VOICE = 34
    VERIFY_MSG = 37
    POSSIBLE_FRIEND_MSG = 40
    SHARE_CARD = 42
    VIDEO = 43
    EMOTICON = 47
    LOCATION = 48
    APP = 49
    VOIP_MSG = 50
    STATUS_NOTIFY = 51
    VOIP_NOTIFY = 52
    VOIP_INVITE = 53
    MICRO_VIDEO = 62
    TRANSFER = 2000
    RED_ENVELOPE = 2001
    MINI_PROGRAM = 2002
    GROUP_INVITE = 2003
    FILE = 2004
    SYS_NOTICE = 9999
    SYS = 10000
    RECALLED = 10002


@dataclass
class MessagePayload:
    id: str = ""
    mention_id_list: list[str] = field(default_factory=list)
    file_name: str = ""
    text: str = ""
    timestamp: datetime | None = None
    type: MessageType = MessageType.UNKNOWN
    # set when the message was recognised locally as a mini program
    fix_mini_app: bool = False
    talker_id: str = ""
    room_id: str = ""
    listener_id: str = ""


@dataclass
class MessageQueryFilter:
    """All non-empty fields must match; from_id and to_id are deprecated aliases."""

    talker_id: str = ""
    from_id: str = ""
    id: str = ""
    room_id: str = ""
    text: str = ""
    text_regexp: re.Pattern | None = None
    to_id: str = ""
    listener_id: str = ""
    type: MessageType = MessageType.UNKNOWN


MessagePayloadFilter = Callable[[MessagePayload], bool]


@dataclass
class MiniProgramPayload(_JsonPayload):
    appid: str = ""
    description: str = ""
    page_path: str = ""
    thumb_url: str = ""
    title: str = ""
    username: str = ""
    thumb_key: str = ""
    share_id: str = ""
    icon_url: str = ""

    _JSON_KEYS: ClassVar[dict[str, str]] = {
        "appid": "appid",
        "description": "description",
        "page_path": "pagePath",
        "thumb_url": "thumbUrl",
        "title": "title",
        "username": "username",
        "thumb_key": "thumbKey",
        "share_id": "shareId",
        "icon_url": "iconUrl",
    }

    def to_json(self) -> str:
        """Serialise with the wire's camelCase keys."""
        return super().to_json()


# puppet events

class PuppetEventName(IntEnum):
    UNKNOWN = 0
    FRIENDSHIP = 1
    LOGIN = 2
    LOGOUT = 3
    MESSAGE = 4
    ROOM_INVITE = 5
    ROOM_JOIN = 6
    ROOM_LEAVE = 7
    ROOM_TOPIC = 8
    SCAN = 9
    DONG = 10
    ERROR = 11
    HEARTBEAT = 12
    READY = 13
    RESET = 14
    DIRTY = 15
    STOP = 16
    START = 17


def event_names() -> list[PuppetEventName]:
    """Return every event name except UNKNOWN, in declaration order."""
    return [name for name in PuppetEventName if name is not PuppetEventName.UNKNOWN]


EVENT_PAYLOAD_CLASSES: dict[PuppetEventName, type] = {
    PuppetEventName.DONG: EventDongPayload,
    PuppetEventName.ERROR: EventErrorPayload,
    PuppetEventName.HEARTBEAT: EventHeartbeatPayload,
    PuppetEventName.FRIENDSHIP: EventFriendshipPayload,
    PuppetEventName.LOGIN: EventLoginPayload,
    PuppetEventName.LOGOUT: EventLogoutPayload,
    PuppetEventName.MESSAGE: EventMessagePayload,
    PuppetEventName.READY: EventReadyPayload,
    PuppetEventName.ROOM_INVITE: EventRoomInvitePayload,
    PuppetEventName.ROOM_JOIN: EventRoomJoinPayload,
    PuppetEventName.ROOM_LEAVE: EventRoomLeavePayload,
    PuppetEventName.ROOM_TOPIC: EventRoomTopicPayload,
    PuppetEventName.SCAN: EventScanPayload,
    PuppetEventName.RESET: EventResetPayload,
    PuppetEventName.DIRTY: EventDirtyPayload,
}


# rooms

@dataclass
class RoomMemberQueryFilter:
    name: str = ""
    room_alias: str = ""
    contact_alias: str = ""


@dataclass
class RoomQueryFilter:
    id: str = ""
    topic: str = ""
    topic_regexp: re.Pattern | None = None

    def is_empty(self) -> bool:
        """True when no field is set."""
        return not self.id and not self.topic and self.topic_regexp is None

    def is_all(self) -> bool:
        """True when every field is set."""
        return bool(self.id) and bool(self.topic) and self.topic_regexp is not None


@dataclass
class RoomPayload:
    id: str = ""
    topic: str = ""
    avatar: str = ""
    member_id_list: list[str] = field(default_factory=list)
    owner_id: str = ""
    admin_id_list: list[str] = field(default_factory=list)


@dataclass
class RoomMemberPayload:
    id: str = ""
    room_alias: str = ""
    inviter_id: str = ""
    avatar: str = ""
    name: str = ""


RoomPayloadFilter = Callable[[RoomPayload], bool]


@dataclass
class RoomInvitationPayload:
    id: str = ""
    inviter_id: str = ""
    topic: str = ""
    avatar: str = ""
    invitation: str = ""
    member_count: int = 0
    member_id_list: list[str] = field(default_factory=list)
    timestamp: datetime | None = None
    receiver_id: str = ""


# emitted values

@dataclass
class EmitStruct:
    """An event received from a puppet."""

    event_name: PuppetEventName
    payload: Any = None


@dataclass
class EventParams:
    """An event with the parameters to emit it with."""

    event_name: PuppetEventName
    params: list[Any] = field(default_factory=list)


# url links

@dataclass
class UrlLinkPayload(_JsonPayload):
    description: str = ""
    thumbnail_url: str = ""
    title: str = ""
    url: str = ""

    _JSON_KEYS: ClassVar[dict[str, str]] = {
        "description": "description",
        "thumbnail_url": "thumbnailUrl",
        "title": "title",
        "url": "url",
    }

    def to_json(self) -> str:
        """Serialise with the wire's camelCase keys."""
        return super().to_json()


def _field_names(cls: type) -> list[str]:
    return [f.name for f in fields(cls)]