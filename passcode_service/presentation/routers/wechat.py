import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from passcode_service.application.handle_message import MessageHandler
from passcode_service.infrastructure.wechat.signature import check_signature
from passcode_service.infrastructure.wechat.xml_messages import (
    parse_message,
    render_text_reply,
)
from passcode_service.presentation.dependencies import (
    get_app_settings,
    get_message_handler,
)
from passcode_service.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wechat", tags=["WeChat"])

# The platform retries anything but a plain "success" body.
ACK = "success"


@router.get("/message")
async def verify_callback(
    settings: Annotated[Settings, Depends(get_app_settings)],
    signature: str = Query(""),
    timestamp: str = Query(""),
    nonce: str = Query(""),
    echostr: str = Query(""),
) -> Response:
    if check_signature(settings.wechat_token, signature, timestamp, nonce):
        logger.info("platform callback verified")
        return Response(content=echostr, media_type="text/plain")
    logger.warning("platform callback verification failed")
    return Response(content="error", media_type="text/plain")


@router.post("/message")
async def receive_message(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    handler: Annotated[MessageHandler, Depends(get_message_handler)],
    signature: str = Query(""),
    timestamp: str = Query(""),
    nonce: str = Query(""),
    encrypt_type: str = Query("raw"),
) -> Response:
    if not check_signature(settings.wechat_token, signature, timestamp, nonce):
        logger.warning("platform message signature mismatch")
        return Response(content=ACK, media_type="text/plain")

    if encrypt_type not in ("", "raw"):
        logger.warning("encrypted platform messages are not supported", extra={"encrypt_type": encrypt_type})
        return Response(content=ACK, media_type="text/plain")

    body = await request.body()
    try:
        inbound = parse_message(body)
    except ValueError as e:
        logger.warning("unparseable platform message", extra={"error": str(e)})
        return Response(content=ACK, media_type="text/plain")

    reply = await handler.handle(inbound)
    if reply is None:
        return Response(content=ACK, media_type="text/plain")

    return Response(
        content=render_text_reply(inbound, reply),
        media_type="application/xml; charset=utf-8",
    )
