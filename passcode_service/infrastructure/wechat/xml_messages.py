from __future__ import annotations

import time
import xml.etree.ElementTree as ET
from typing import Optional

from passcode_service.domain.messages import InboundMessage


def _text(root: ET.Element, tag: str) -> str:
    node = root.find(tag)
    if node is None or node.text is None:
        return ""
    return node.text


def parse_message(body: str | bytes) -> InboundMessage:
    """
    Parse a plaintext platform callback. Raises ValueError when the body is
    not XML or lacks the sender/type fields.
    """
    if "<!DOCTYPE" in (body.decode("utf-8", "replace") if isinstance(body, bytes) else body):
        raise ValueError("DTDs are not accepted")
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ValueError(f"malformed message XML: {e}") from e

    from_user = _text(root, "FromUserName")
    msg_type = _text(root, "MsgType")
    if not from_user or not msg_type:
        raise ValueError("message is missing FromUserName or MsgType")

    create_time = _text(root, "CreateTime")
    return InboundMessage(
        to_user=_text(root, "ToUserName"),
        from_user=from_user,
        msg_type=msg_type,
        create_time=int(create_time) if create_time.isdigit() else 0,
        content=_text(root, "Content"),
        event=_text(root, "Event"),
        event_key=_text(root, "EventKey"),
        pic_url=_text(root, "PicUrl"),
        media_id=_text(root, "MediaId"),
    )


def render_text_reply(
    inbound: InboundMessage, content: str, *, now: Optional[int] = None
) -> str:
    """Text reply addressed back to the sender (from/to swapped)."""
    root = ET.Element("xml")
    ET.SubElement(root, "ToUserName").text = inbound.from_user
    ET.SubElement(root, "FromUserName").text = inbound.to_user
    ET.SubElement(root, "CreateTime").text = str(now if now is not None else int(time.time()))
    ET.SubElement(root, "MsgType").text = "text"
    ET.SubElement(root, "Content").text = content
    return ET.tostring(root, encoding="unicode")
