"""
Feed bot registration endpoints.

A GroupMe user (identified by their access token) can list their groups
and feed bots, and create a new feed bot in one of their groups.
"""
from fastapi import APIRouter, HTTPException, status, Depends, Header
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncIterator, List, Optional
import logging

import httpx

from dinobot.clients import GroupMeClient, GroupMeAuthorizationError
from dinobot.config import settings
from dinobot.db.connection import get_db_session
from dinobot.domain.entities import BotRegistration, RegistrationDetails
from dinobot.repositories.registration_repository import RegistrationRepository

logger = logging.getLogger(__name__)

router = APIRouter()

BOT_NAME_TEMPLATE = "TwitterBot {}"
WELCOME_TEMPLATE = (
    "Hello! I'm TwitterBot. I'll be searching Twitter every five minutes for "
    "references of '{}'. If I find anything, I'll post it here!"
)


# ============================================
# Request/Response Models
# ============================================

class CreateRegistrationRequest(BaseModel):
    """Request to create a feed bot in a group"""
    group_id: str = Field(..., min_length=1, description="GroupMe group ID")
    search_term: str = Field(..., min_length=1, max_length=500, description="Twitter search query")


class GroupResponse(BaseModel):
    id: str
    name: str
    updated_at: Optional[int] = None


class RegistrationResponse(BaseModel):
    bot_id: str
    group_id: str
    search_term: str
    most_recent_item_id: Optional[str] = None
    group_name: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None


class RegistrationsOverviewResponse(BaseModel):
    """Everything the registration page shows"""
    user: UserResponse
    groups: List[GroupResponse]
    registrations: List[RegistrationResponse]


# ============================================
# Dependencies
# ============================================

async def get_groupme_client() -> AsyncIterator[GroupMeClient]:
    """GroupMe API client (overridden in tests)"""
    async with httpx.AsyncClient() as http_client:
        yield GroupMeClient(http_client=http_client, settings=settings, logger_instance=logger)


def require_access_token(
    access_token: Optional[str] = Header(None, alias="X-Access-Token")
) -> str:
    if not access_token:
        raise _login_required("GroupMe access token required")
    return access_token


def _login_required(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": detail, "login_url": settings.groupme_oauth_url or None}
    )


def _platform_failure(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


# ============================================
# Endpoints
# ============================================

@router.get("/login")
async def login():
    """Send the user to GroupMe's OAuth page (which redirects back with access_token)"""
    if not settings.groupme_oauth_url:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="GroupMe login is not configured"
        )
    return RedirectResponse(url=settings.groupme_oauth_url, status_code=status.HTTP_302_FOUND)


@router.get("/registrations", response_model=RegistrationsOverviewResponse)
async def list_registrations(
    access_token: str = Depends(require_access_token),
    groupme: GroupMeClient = Depends(get_groupme_client),
    db: AsyncSession = Depends(get_db_session)
):
    """
    List the user's groups and the feed bots they registered.

    Groups are ordered most recently updated first.
    """
    try:
        user = await groupme.get_user(access_token)
        groups = await groupme.get_groups(access_token)
    except GroupMeAuthorizationError:
        logger.info("GroupMe token rejected, login required")
        raise _login_required("GroupMe access token rejected, please login again")

    if user is None or groups is None:
        raise _platform_failure("Failed to load user details from GroupMe")

    groups = sorted(groups, key=lambda group: group.updated_at or 0, reverse=True)

    repo = RegistrationRepository(db)
    registrations = await repo.list_for_user(user.id)
    details = RegistrationDetails.combine(registrations, groups)

    logger.info(f"📋 User {user.id}: {len(groups)} group(s), {len(details)} registration(s)")

    return RegistrationsOverviewResponse(
        user=UserResponse(id=user.id, name=user.name),
        groups=[
            GroupResponse(id=group.id, name=group.name, updated_at=group.updated_at)
            for group in groups
        ],
        registrations=[
            RegistrationResponse(
                bot_id=detail.bot_id,
                group_id=detail.group_id,
                search_term=detail.search_term,
                most_recent_item_id=detail.most_recent_item_id,
                group_name=detail.group_name,
            )
            for detail in details
        ],
    )


@router.post(
    "/registrations",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_registration(
    request: CreateRegistrationRequest,
    access_token: str = Depends(require_access_token),
    groupme: GroupMeClient = Depends(get_groupme_client),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Create a feed bot in one of the user's groups.

    The bot introduces itself in the group and is picked up by the next
    relay pass.
    """
    search_term = request.search_term.strip()
    if not search_term:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="search_term cannot be blank"
        )

    try:
        user = await groupme.get_user(access_token)
        if user is None:
            raise _platform_failure("Failed to load user details from GroupMe")

        created = await groupme.create_bot(
            access_token,
            request.group_id,
            BOT_NAME_TEMPLATE.format(search_term),
            avatar_url=settings.bot_avatar_url or None
        )
    except GroupMeAuthorizationError:
        logger.info("GroupMe token rejected, login required")
        raise _login_required("GroupMe access token rejected, please login again")

    if created is None:
        raise _platform_failure("GroupMe did not create the bot")

    status_code = await groupme.post_text(created.bot_id, WELCOME_TEMPLATE.format(search_term))
    if status_code != 202:
        logger.warning(f"⚠️ Welcome message for bot {created.bot_id} not accepted (status {status_code})")

    registration = BotRegistration(
        bot_id=created.bot_id,
        user_id=user.id,
        group_id=request.group_id,
        search_term=search_term,
    )
    repo = RegistrationRepository(db)
    await repo.save(registration)

    logger.info(f"✅ Registered bot {created.bot_id} for '{search_term}' in group {request.group_id}")

    return RegistrationResponse(
        bot_id=registration.bot_id,
        group_id=registration.group_id,
        search_term=registration.search_term,
        most_recent_item_id=registration.most_recent_item_id,
    )
