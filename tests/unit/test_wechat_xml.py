import hashlib
import xml.etree.ElementTree as ET

import pytest

from passcode_service.infrastructure.wechat.signature import check_signature, compute_signature
from passcode_service.infrastructure.wechat.xml_messages import parse_message, render_text_reply

TEXT_XML = """<xml>
  <ToUserName><![CDATA[gh_app]]></ToUserName>
  <FromUserName><![CDATA[openid-1]]></FromUserName>
  <CreateTime>1700000000</CreateTime>
  <MsgType><![CDATA[text]]></MsgType>
  <Content><![CDATA[passcode]]></Content>
  <MsgId>1234567890</MsgId>
</xml>"""

EVENT_XML = """<xml>
  <ToUserName><![CDATA[gh_app]]></ToUserName>
  <FromUserName><![CDATA[openid-2]]></FromUserName>
  <CreateTime>1700000001</CreateTime>
  <MsgType><![CDATA[event]]></MsgType>
  <Event><![CDATA[CLICK]]></Event>
  <EventKey><![CDATA[GET_PASSCODE]]></EventKey>
</xml>"""


def test_signature_matches_sorted_sha1():
    # sorted(["token", "1700000000", "nonce"]) -> "1700000000noncetoken"
    expected = hashlib.sha1(b"1700000000noncetoken").hexdigest()
    assert compute_signature("token", "1700000000", "nonce") == expected
    assert check_signature("token", expected, "1700000000", "nonce")


def test_signature_rejects_mismatch_and_missing_parts():
    sig = compute_signature("token", "1", "n")
    assert not check_signature("other", sig, "1", "n")
    assert not check_signature("token", "", "1", "n")
    assert not check_signature("token", sig, "", "n")


def test_parse_text_message():
    msg = parse_message(TEXT_XML)
    assert msg.from_user == "openid-1"
    assert msg.to_user == "gh_app"
    assert msg.msg_type == "text"
    assert msg.content == "passcode"
    assert msg.create_time == 1700000000


def test_parse_event_message_from_bytes():
    msg = parse_message(EVENT_XML.encode("utf-8"))
    assert msg.msg_type == "event"
    assert msg.event == "CLICK"
    assert msg.event_key == "GET_PASSCODE"
    assert msg.content == ""


@pytest.mark.parametrize(
    "body",
    [
        "not xml",
        "<xml><MsgType>text</MsgType></xml>",
        '<!DOCTYPE x [<!ENTITY a "b">]><xml><FromUserName>&a;</FromUserName></xml>',
    ],
)
def test_parse_rejects_bad_bodies(body):
    with pytest.raises(ValueError):
        parse_message(body)


def test_render_reply_swaps_sender_and_recipient():
    inbound = parse_message(TEXT_XML)
    out = ET.fromstring(render_text_reply(inbound, "Your passcode: <AB12CD>", now=42))
    assert out.findtext("ToUserName") == "openid-1"
    assert out.findtext("FromUserName") == "gh_app"
    assert out.findtext("CreateTime") == "42"
    assert out.findtext("MsgType") == "text"
    assert out.findtext("Content") == "Your passcode: <AB12CD>"
