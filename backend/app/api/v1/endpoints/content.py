"""
Blog posts and the contact form.

Anonymous visitors see published posts only. Contact messages are created
publicly and managed by admins.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.core.logging_config import logger
from app.models.content import BlogPost, ContactMessage, ContactMessageStatus
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin
from app.schemas.content import (
    BlogPostCreate,
    BlogPostUpdate,
    BlogPostResponse,
    ContactMessageCreate,
    ContactMessageStatusUpdate,
    ContactMessageResponse,
)
from app.services.audit_service import log_action, diff_fields
from app.utils.pagination import paginate

blogs_router = APIRouter()
contact_router = APIRouter()


def _blog_serializer(post: BlogPost) -> dict:
    return BlogPostResponse.model_validate(post).model_dump()


async def _get_post(db: AsyncSession, post_id: str) -> BlogPost:
    post = (await db.execute(select(BlogPost).where(BlogPost.id == post_id))).scalar_one_or_none()
    if not post:
        raise ResourceNotFoundError("Blog post", post_id)
    return post


# ==================== BLOG ====================

@blogs_router.get("")
async def list_posts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Published posts, newest first"""
    query = select(BlogPost).where(BlogPost.published.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(BlogPost.title.ilike(pattern), BlogPost.content.ilike(pattern)))
    query = query.order_by(BlogPost.created_at.desc())
    return await paginate(db, query, page, page_size, serializer=_blog_serializer)


@blogs_router.get("/all")
async def list_all_posts(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    published: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Admin view including drafts"""
    query = select(BlogPost)
    if published is not None:
        query = query.where(BlogPost.published.is_(published))
    query = query.order_by(BlogPost.created_at.desc())
    return await paginate(db, query, page, page_size, serializer=_blog_serializer)


@blogs_router.get("/{post_id}", response_model=BlogPostResponse)
async def get_post(post_id: str, db: AsyncSession = Depends(get_db)):
    post = await _get_post(db, post_id)
    if not post.published:
        raise ResourceNotFoundError("Blog post", post_id)
    return post


@blogs_router.post("", response_model=BlogPostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: BlogPostCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    post = BlogPost(**data.model_dump(), created_by=current_admin.id)
    if not post.author:
        post.author = current_admin.full_name
    db.add(post)
    await db.flush()
    await log_action(db, current_admin.id, "blog_post_created", "blog_post", post.id,
                     details={"title": post.title, "published": post.published}, request=request)
    await db.commit()
    await db.refresh(post)
    return post


@blogs_router.put("/{post_id}", response_model=BlogPostResponse)
async def update_post(
    post_id: str,
    data: BlogPostUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    post = await _get_post(db, post_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    changes = diff_fields(post, {k: v for k, v in updates.items() if k != "content"})
    for field, value in updates.items():
        setattr(post, field, value)
    await log_action(db, current_admin.id, "blog_post_updated", "blog_post", post.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(post)
    return post


@blogs_router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    post = await _get_post(db, post_id)
    await db.delete(post)
    await log_action(db, current_admin.id, "blog_post_deleted", "blog_post", post_id,
                     details={"title": post.title}, request=request)
    await db.commit()
    return {"success": True, "message": "Post deleted"}


# ==================== CONTACT ====================

@contact_router.post("", response_model=ContactMessageResponse, status_code=status.HTTP_201_CREATED)
async def submit_contact_message(
    data: ContactMessageCreate,
    db: AsyncSession = Depends(get_db)
):
    message = ContactMessage(**data.model_dump(), status=ContactMessageStatus.NEW)
    db.add(message)
    await db.commit()
    await db.refresh(message)
    logger.info(f"[Contact] New message from {message.email}")
    return message


@contact_router.get("", response_model=List[ContactMessageResponse])
async def list_contact_messages(
    status: Optional[ContactMessageStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = select(ContactMessage)
    if status:
        query = query.where(ContactMessage.status == status)
    result = await db.execute(query.order_by(ContactMessage.created_at.desc()))
    return result.scalars().all()


@contact_router.patch("/{message_id}", response_model=ContactMessageResponse)
async def update_contact_message_status(
    message_id: str,
    data: ContactMessageStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    message = (await db.execute(
        select(ContactMessage).where(ContactMessage.id == message_id)
    )).scalar_one_or_none()
    if not message:
        raise ResourceNotFoundError("Contact message", message_id)

    old_status = message.status
    message.status = data.status
    await log_action(db, current_admin.id, "contact_message_status_changed", "contact_message", message.id,
                     details={"old": old_status.value, "new": data.status.value}, request=request)
    await db.commit()
    await db.refresh(message)
    return message


@contact_router.delete("/{message_id}")
async def delete_contact_message(
    message_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    message = (await db.execute(
        select(ContactMessage).where(ContactMessage.id == message_id)
    )).scalar_one_or_none()
    if not message:
        raise ResourceNotFoundError("Contact message", message_id)
    await db.delete(message)
    await log_action(db, current_admin.id, "contact_message_deleted", "contact_message", message_id,
                     request=request)
    await db.commit()
    return {"success": True, "message": "Message deleted"}
