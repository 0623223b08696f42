import json
import re

import pytest

from wechaty_puppet.schemas import (
    EVENT_PAYLOAD_CLASSES,
    BaseEventPayload,
    ContactGender,
    EmitStruct,
    EventParams,
    EventScanPayload,
    FriendshipSceneType,
    MessagePayload,
    MessageQueryFilter,
    MessageType,
    MiniProgramPayload,
    PayloadType,
    PuppetEventName,
    RoomQueryFilter,
    ScanStatus,
    UrlLinkPayload,
    WeChatAppMessageType,
    WeChatMessageType,
    event_names,
)


def test_message_type_values_fixed_by_source():
    assert MessageType(0) is MessageType.UNKNOWN
    assert MessageType(7) is MessageType.TEXT
    assert MessageType(9) is MessageType.MINI_PROGRAM
    assert MessageType(13) is MessageType.RECALLED
    assert MessageType(15) is MessageType.VIDEO


def test_wechat_type_values():
    assert WeChatMessageType(10002) is WeChatMessageType.RECALLED
    assert WeChatMessageType(49) is WeChatMessageType.APP
    assert WeChatAppMessageType(100001) is WeChatAppMessageType.READER_TYPE
    assert WeChatAppMessageType(33) is WeChatAppMessageType.MINI_PROGRAM


def test_scene_type_values():
    assert FriendshipSceneType(12) is FriendshipSceneType.QQTBD
    assert FriendshipSceneType(30) is FriendshipSceneType.QRCODE


def test_payload_type_order():
    assert [PayloadType(i) for i in range(6)] == list(PayloadType)
    assert PayloadType(4) is PayloadType.ROOM_MEMBER


def test_scan_status():
    assert ScanStatus(2) is ScanStatus.WAITING
    assert ScanStatus(5) is ScanStatus.TIMEOUT


def test_event_names():
    names = event_names()
    assert PuppetEventName.UNKNOWN not in names
    assert len(names) == len(PuppetEventName) - 1
    assert names[0] is PuppetEventName.FRIENDSHIP
    assert names[-1] is PuppetEventName.START


def test_event_payload_classes():
    heartbeat = EVENT_PAYLOAD_CLASSES[PuppetEventName.HEARTBEAT](data="beat")
    assert type(heartbeat) is BaseEventPayload
    assert heartbeat.data == "beat"
    scan = EVENT_PAYLOAD_CLASSES[PuppetEventName.SCAN](data="x", status=ScanStatus(2), qr_code="q")
    assert type(scan) is EventScanPayload
    assert scan.qr_code == "q"
    assert PuppetEventName.STOP not in EVENT_PAYLOAD_CLASSES


def test_scan_payload_inherits_data():
    payload = EventScanPayload(data="x", status=ScanStatus.WAITING, qr_code="code")
    assert payload.data == "x"
    assert payload.status is ScanStatus.WAITING


def test_message_payload_defaults_are_independent():
    first = MessagePayload()
    second = MessagePayload()
    first.mention_id_list.append("a")
    assert second.mention_id_list == []
    assert first.type is MessageType.UNKNOWN
    assert first.timestamp is None


def test_message_query_filter_defaults():
    query = MessageQueryFilter()
    assert query.type is MessageType.UNKNOWN
    assert query.text_regexp is None


def test_room_query_filter_empty():
    assert RoomQueryFilter().is_empty()
    assert not RoomQueryFilter(id="room").is_empty()
    assert not RoomQueryFilter(topic_regexp=re.compile("x")).is_empty()


def test_room_query_filter_all():
    full = RoomQueryFilter(id="room", topic="topic", topic_regexp=re.compile("t"))
    assert full.is_all()
    assert not RoomQueryFilter(id="room", topic="topic").is_all()


def test_url_link_to_json_exact():
    link = UrlLinkPayload(description="d", thumbnail_url="t", title="x", url="u")
    assert link.to_json() == (
        '{"description":"d","thumbnailUrl":"t","title":"x","url":"u"}'
    )


def test_url_link_round_trip():
    link = UrlLinkPayload(
        description="Go Wechaty is a Conversational SDK",
        thumbnail_url="https://example.com/icon.png",
        title="wechaty",
        url="https://example.com/",
    )
    assert UrlLinkPayload.from_json(link.to_json()) == link


def test_mini_program_keys_in_order():
    keys = list(json.loads(MiniProgramPayload().to_json()))
    assert keys == [
        "appid",
        "description",
        "pagePath",
        "thumbUrl",
        "title",
        "username",
        "thumbKey",
        "shareId",
        "iconUrl",
    ]


def test_mini_program_round_trip():
    payload = MiniProgramPayload(appid="wx1", page_path="p/index", title="标题", share_id="s")
    text = payload.to_json()
    assert "标题" in text
    assert MiniProgramPayload.from_json(text) == payload


def test_html_characters_escaped():
    text = UrlLinkPayload(title="<a&b>").to_json()
    assert '"title":"\\u003ca\\u0026b\\u003e"' in text
    assert json.loads(text)["title"] == "<a&b>"


def test_from_json_keys_case_insensitive():
    link = UrlLinkPayload.from_json('{"ThumbnailURL":"t","Url":"u"}')
    assert link.thumbnail_url == "t"
    assert link.url == "u"


def test_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        UrlLinkPayload.from_json("[1]")
    with pytest.raises(ValueError):
        MiniProgramPayload.from_json("not json")


def test_emit_structures():
    emitted = EmitStruct(PuppetEventName.LOGIN, payload="p")
    params = EventParams(PuppetEventName.MESSAGE)
    assert emitted.event_name is PuppetEventName.LOGIN
    assert params.params == []


def test_gender_from_int():
    assert ContactGender(2) is ContactGender.FEMALE