"""GroupMe bot callback endpoints"""
from fastapi import APIRouter, Request, Response, HTTPException, status, Depends
from typing import AsyncIterator
import json
import logging
import random

import httpx

from dinobot.clients import GroupMeClient
from dinobot.config import RuleConfig, load_rule_config, settings
from dinobot.core.interfaces import IBotPoster
from dinobot.domain.entities import InboundMessage
from dinobot.services.dino_responder import DinoResponder

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_bot_poster() -> AsyncIterator[IBotPoster]:
    """Bot poster backed by the GroupMe API (overridden in tests)"""
    async with httpx.AsyncClient() as http_client:
        yield GroupMeClient(http_client=http_client, settings=settings, logger_instance=logger)


def get_random() -> random.Random:
    """Random source for the question rule (overridden in tests)"""
    return random.Random()


def get_rule_config() -> RuleConfig:
    """Rule configuration, re-read from the environment on every request"""
    return load_rule_config(settings)


@router.post("/dino")
@router.post("/dino/")
async def handle_missing_bot_id():
    """Callback URL configured without a bot ID"""
    logger.warning("❌ Callback received without a bot ID")
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Bot ID is required in the callback URL"
    )


@router.post("/dino/{bot_id}")
async def handle_dino_callback(
    bot_id: str,
    request: Request,
    response: Response,
    poster: IBotPoster = Depends(get_bot_poster),
    rng: random.Random = Depends(get_random),
    rule_config: RuleConfig = Depends(get_rule_config)
):
    """
    Callback endpoint for a DinoBot.

    GroupMe POSTs every message posted in the bot's group here.

    Returns:
        201 if a reply was posted, 200 if there was nothing to post
        (or GroupMe did not accept the post), 400 for malformed requests
    """
    if not bot_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Bot ID is required in the callback URL"
        )

    raw_body = await request.body()
    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Invalid callback payload: not JSON")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON message"
        )

    if not isinstance(body, dict):
        logger.warning("Invalid callback payload: not a dictionary")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON message"
        )

    try:
        message = InboundMessage.from_payload(body)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid callback payload: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body is not a valid GroupMe message"
        )

    if not message.text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message text is required"
        )

    # Log only metadata, never message content
    logger.info(f"📨 Callback for bot {bot_id} - message {message.id}, group {message.group_id}")

    if not message.is_group_message:
        logger.info("Direct message, ignoring")
        response.status_code = status.HTTP_200_OK
        return {"status": "ignored"}

    responder = DinoResponder(
        bot_id=bot_id,
        poster=poster,
        rule_config=rule_config,
        rng=rng,
        delay_ms=settings.emoji_post_delay_ms
    )

    try:
        posted = await responder.process(message)
    except Exception as e:
        # Posting errors never fail the callback
        logger.error(f"❌ Error replying to message {message.id}: {e}", exc_info=True)
        posted = False

    if posted:
        response.status_code = status.HTTP_201_CREATED
        return {"status": "posted"}

    response.status_code = status.HTTP_200_OK
    return {"status": "no_action"}
