"""Normalisation of message payloads that puppet services leave unparsed."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from .log import get_logger
from .schemas import MessagePayload, MessageType, MiniProgramPayload

_log = get_logger("wechaty-puppet/helper")

MINI_APP_XML_TYPE = "36"

_NUMERIC = re.compile(r"[0-9]+")


def _parse(raw: str, root_tag: str) -> ET.Element:
    root = ET.fromstring(raw)
    if root.tag != root_tag:
        raise ValueError(f"expected element type <{root_tag}> but have <{root.tag}>")
    return root


def _chardata(element: ET.Element) -> str:
    return (element.text or "") + "".join(child.tail or "" for child in element)


def _text(root: ET.Element, path: str) -> str:
    element = root.find(path)
    return "" if element is None else _chardata(element)


def fix_unknown_message(payload: MessagePayload) -> None:
    """Recognise mini-program XML in a message of unknown type."""
    if payload.type != MessageType.UNKNOWN:
        return
    try:
        root = _parse(payload.text, "msg")
    except (ET.ParseError, ValueError) as exc:
        _log.error("FixUnknownMessage raw:%s || err: %s", payload.text, exc)
        return
    if _text(root, "appmsg/type") == MINI_APP_XML_TYPE:
        payload.type = MessageType.MINI_PROGRAM
        payload.fix_mini_app = True


def parse_mini_app(payload: MessagePayload) -> MiniProgramPayload:
    """Build a mini-program payload from the message's XML text.

    Raises ValueError when the text is not mini-program XML.
    """
    try:
        root = _parse(payload.text, "msg")
    except (ET.ParseError, ValueError) as exc:
        raise ValueError(f"ParseMiniApp raw:{payload.text} || err: {exc}") from exc
    xml_type = _text(root, "appmsg/type")
    if xml_type != MINI_APP_XML_TYPE:
        raise ValueError(f"ParseMiniApp: not a mini program message, xml type: {xml_type}")
    return MiniProgramPayload(
        appid=_text(root, "appmsg/weappinfo/appid"),
        description="",
        page_path=_text(root, "appmsg/weappinfo/pagepath"),
        thumb_url=_text(root, "appmsg/appattach/cdnthumburl"),
        title=_text(root, "appmsg/title"),
        username=_text(root, "appmsg/weappinfo/username"),
        thumb_key=_text(root, "appmsg/appattach/cdnthumbaeskey"),
    )


def parse_recalled_id(raw: str) -> str:
    """Return the id of the recalled message in revoke XML, or the text unchanged."""
    try:
        root = _parse(raw, "sysmsg")
    except (ET.ParseError, ValueError):
        return raw
    new_id = _text(root, "revokemsg/newmsgid")
    return new_id or raw


def adapt_message(payload: MessagePayload) -> MessagePayload:
    """Normalise a payload in place according to its type and return it."""
    if payload.type == MessageType.UNKNOWN:
        fix_unknown_message(payload)
    elif payload.type == MessageType.RECALLED:
        if not _NUMERIC.fullmatch(payload.text):
            payload.text = parse_recalled_id(payload.text)
    return payload