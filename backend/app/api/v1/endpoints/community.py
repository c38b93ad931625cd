"""
Community message board.

Top-level posts form threads; replies always hang off the thread root.
Anonymous posts never expose their author, even to staff.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.core.database import get_db
from app.core.exceptions import AuthorizationError, ResourceNotFoundError
from app.models.community import CommunityMessage
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_current_staff, is_staff
from app.schemas.community import (
    CommunityMessageCreate,
    CommunityMessageUpdate,
    CommunityMessageResponse,
    CommunityThreadResponse,
    TopicCount,
)
from app.services.audit_service import log_action
from app.services.settings_service import get_setting_value
from app.utils.pagination import create_paginated_response, MAX_PAGE_SIZE

router = APIRouter()


async def _authors(db: AsyncSession, messages: Iterable[CommunityMessage]) -> Dict[str, User]:
    ids = {m.user_id for m in messages if not m.is_anonymous}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u for u in result.scalars().all()}


async def _reply_counts(db: AsyncSession, message_ids: List[str]) -> Dict[str, int]:
    if not message_ids:
        return {}
    result = await db.execute(
        select(CommunityMessage.parent_id, func.count(CommunityMessage.id))
        .where(CommunityMessage.parent_id.in_(message_ids))
        .group_by(CommunityMessage.parent_id)
    )
    return dict(result.all())


def _serialize(message: CommunityMessage, authors: Dict[str, User], reply_count: int = 0) -> dict:
    author = None
    if not message.is_anonymous and message.user_id in authors:
        user = authors[message.user_id]
        author = {"id": user.id, "full_name": user.full_name, "avatar_url": user.avatar_url}
    return {
        "id": message.id,
        "parent_id": message.parent_id,
        "content": message.content,
        "topic": message.topic,
        "image_url": message.image_url,
        "mentions": message.mentions,
        "is_pinned": message.is_pinned,
        "is_anonymous": message.is_anonymous,
        "author": author,
        "reply_count": reply_count,
        "created_at": message.created_at,
        "edited_at": message.edited_at,
    }


async def _get_message(db: AsyncSession, message_id: str) -> CommunityMessage:
    message = (await db.execute(
        select(CommunityMessage).where(CommunityMessage.id == message_id)
    )).scalar_one_or_none()
    if not message:
        raise ResourceNotFoundError("Message", message_id)
    return message


async def _require_board_enabled(db: AsyncSession) -> None:
    if not await get_setting_value(db, "features.community_enabled", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The community board is currently disabled"
        )


def _normalize_topic(topic: Optional[str]) -> Optional[str]:
    if not topic:
        return None
    topic = topic.strip().lstrip("#").lower()
    return topic or None


@router.get("/messages")
async def list_messages(
    topic: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Thread roots: pinned first, then newest"""
    query = select(CommunityMessage).where(CommunityMessage.parent_id.is_(None))
    topic = _normalize_topic(topic)
    if topic:
        query = query.where(CommunityMessage.topic == topic)

    total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
    result = await db.execute(
        query.order_by(CommunityMessage.is_pinned.desc(), CommunityMessage.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    messages = result.scalars().all()

    authors = await _authors(db, messages)
    counts = await _reply_counts(db, [m.id for m in messages])
    items = [_serialize(m, authors, counts.get(m.id, 0)) for m in messages]
    return create_paginated_response(items, total, page, page_size)


@router.get("/messages/{message_id}", response_model=CommunityThreadResponse)
async def get_thread(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    message = await _get_message(db, message_id)
    root = await _get_message(db, message.parent_id) if message.parent_id else message

    replies = (await db.execute(
        select(CommunityMessage)
        .where(CommunityMessage.parent_id == root.id)
        .order_by(CommunityMessage.created_at.asc())
    )).scalars().all()

    authors = await _authors(db, [root, *replies])
    thread = _serialize(root, authors, len(replies))
    thread["replies"] = [_serialize(reply, authors) for reply in replies]
    return thread


@router.post("/messages", response_model=CommunityMessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    data: CommunityMessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _require_board_enabled(db)
    message = CommunityMessage(
        user_id=current_user.id,
        content=data.content.strip(),
        topic=_normalize_topic(data.topic),
        image_url=data.image_url,
        mentions=data.mentions,
        is_anonymous=data.is_anonymous,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return _serialize(message, {current_user.id: current_user})


@router.post("/messages/{message_id}/replies", response_model=CommunityMessageResponse,
             status_code=status.HTTP_201_CREATED)
async def reply_to_message(
    message_id: str,
    data: CommunityMessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _require_board_enabled(db)
    parent = await _get_message(db, message_id)
    root_id = parent.parent_id or parent.id

    reply = CommunityMessage(
        user_id=current_user.id,
        parent_id=root_id,
        content=data.content.strip(),
        topic=_normalize_topic(data.topic) or parent.topic,
        image_url=data.image_url,
        mentions=data.mentions,
        is_anonymous=data.is_anonymous,
    )
    db.add(reply)
    await db.commit()
    await db.refresh(reply)
    return _serialize(reply, {current_user.id: current_user})


@router.put("/messages/{message_id}", response_model=CommunityMessageResponse)
async def edit_message(
    message_id: str,
    data: CommunityMessageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    message = await _get_message(db, message_id)
    if message.user_id != current_user.id:
        raise AuthorizationError("You can only edit your own messages")

    message.content = data.content.strip()
    if data.topic is not None:
        message.topic = _normalize_topic(data.topic)
    message.edited_at = datetime.utcnow()
    await db.commit()
    await db.refresh(message)
    return _serialize(message, {current_user.id: current_user})


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Authors delete their own posts; staff can delete any (audited)"""
    message = await _get_message(db, message_id)
    if message.user_id != current_user.id:
        if not await is_staff(db, current_user):
            raise AuthorizationError("You can only delete your own messages")
        await log_action(db, current_user.id, "community_message_deleted", "community_message", message.id,
                         details={"author_id": message.user_id}, request=request)

    await db.delete(message)
    await db.commit()
    return {"success": True, "message": "Message deleted"}


@router.post("/messages/{message_id}/pin", response_model=CommunityMessageResponse)
async def toggle_pin(
    message_id: str,
    request: Request,
    current_user: User = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db)
):
    message = await _get_message(db, message_id)
    if message.parent_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only thread starters can be pinned"
        )
    message.is_pinned = not message.is_pinned
    await log_action(db, current_user.id, "community_message_pinned" if message.is_pinned else "community_message_unpinned",
                     "community_message", message.id, request=request)
    await db.commit()
    await db.refresh(message)
    authors = await _authors(db, [message])
    counts = await _reply_counts(db, [message.id])
    return _serialize(message, authors, counts.get(message.id, 0))


@router.get("/topics", response_model=List[TopicCount])
async def trending_topics(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = func.count(CommunityMessage.id)
    result = await db.execute(
        select(CommunityMessage.topic, count)
        .where(CommunityMessage.topic.is_not(None))
        .group_by(CommunityMessage.topic)
        .order_by(count.desc(), CommunityMessage.topic)
        .limit(limit)
    )
    return [{"topic": topic, "count": n} for topic, n in result.all()]
