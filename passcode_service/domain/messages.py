from dataclasses import dataclass


@dataclass(frozen=True)
class InboundMessage:
    """A message or event pushed by the messaging platform."""

    to_user: str
    from_user: str
    msg_type: str
    create_time: int = 0
    content: str = ""
    event: str = ""
    event_key: str = ""
    pic_url: str = ""
    media_id: str = ""
