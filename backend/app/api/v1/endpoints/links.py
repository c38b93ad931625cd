"""
Community group links and custom site links.

Public lists; admin CRUD. The public custom-link list only shows active links.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.models.link import CommunityLink, CommunityLinkType, CustomLink, CustomLinkCategory
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin
from app.schemas.links import (
    CommunityLinkCreate,
    CommunityLinkUpdate,
    CommunityLinkResponse,
    CustomLinkCreate,
    CustomLinkUpdate,
    CustomLinkResponse,
)
from app.services.audit_service import log_action, diff_fields

community_links_router = APIRouter()
custom_links_router = APIRouter()


async def _get_or_404(db: AsyncSession, model, label: str, item_id: str):
    item = (await db.execute(select(model).where(model.id == item_id))).scalar_one_or_none()
    if not item:
        raise ResourceNotFoundError(label, item_id)
    return item


# ==================== COMMUNITY LINKS ====================

@community_links_router.get("", response_model=List[CommunityLinkResponse])
async def list_community_links(
    type: Optional[CommunityLinkType] = None,
    db: AsyncSession = Depends(get_db)
):
    query = select(CommunityLink)
    if type:
        query = query.where(CommunityLink.type == type)
    result = await db.execute(query.order_by(CommunityLink.name))
    return result.scalars().all()


@community_links_router.post("", response_model=CommunityLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_community_link(
    data: CommunityLinkCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = CommunityLink(**data.model_dump())
    db.add(link)
    await db.flush()
    await log_action(db, current_admin.id, "community_link_created", "community_link", link.id,
                     details={"name": link.name}, request=request)
    await db.commit()
    await db.refresh(link)
    return link


@community_links_router.put("/{link_id}", response_model=CommunityLinkResponse)
async def update_community_link(
    link_id: str,
    data: CommunityLinkUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = await _get_or_404(db, CommunityLink, "Community link", link_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    changes = diff_fields(link, updates)
    for field, value in updates.items():
        setattr(link, field, value)
    await log_action(db, current_admin.id, "community_link_updated", "community_link", link.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(link)
    return link


@community_links_router.delete("/{link_id}")
async def delete_community_link(
    link_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = await _get_or_404(db, CommunityLink, "Community link", link_id)
    await db.delete(link)
    await log_action(db, current_admin.id, "community_link_deleted", "community_link", link_id,
                     details={"name": link.name}, request=request)
    await db.commit()
    return {"success": True, "message": "Link deleted"}


# ==================== CUSTOM LINKS ====================

@custom_links_router.get("", response_model=List[CustomLinkResponse])
async def list_custom_links(
    category: Optional[CustomLinkCategory] = None,
    db: AsyncSession = Depends(get_db)
):
    query = select(CustomLink).where(CustomLink.is_active.is_(True))
    if category:
        query = query.where(CustomLink.category == category)
    result = await db.execute(query.order_by(CustomLink.category, CustomLink.name))
    return result.scalars().all()


@custom_links_router.get("/all", response_model=List[CustomLinkResponse])
async def list_all_custom_links(
    category: Optional[CustomLinkCategory] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Admin view including inactive links"""
    query = select(CustomLink)
    if category:
        query = query.where(CustomLink.category == category)
    result = await db.execute(query.order_by(CustomLink.category, CustomLink.name))
    return result.scalars().all()


@custom_links_router.post("", response_model=CustomLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_custom_link(
    data: CustomLinkCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = CustomLink(**data.model_dump(), created_by=current_admin.id)
    db.add(link)
    await db.flush()
    await log_action(db, current_admin.id, "custom_link_created", "custom_link", link.id,
                     details={"name": link.name, "category": link.category.value}, request=request)
    await db.commit()
    await db.refresh(link)
    return link


@custom_links_router.put("/{link_id}", response_model=CustomLinkResponse)
async def update_custom_link(
    link_id: str,
    data: CustomLinkUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = await _get_or_404(db, CustomLink, "Custom link", link_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    changes = diff_fields(link, updates)
    for field, value in updates.items():
        setattr(link, field, value)
    await log_action(db, current_admin.id, "custom_link_updated", "custom_link", link.id,
                     details={"changes": changes}, request=request)
    await db.commit()
    await db.refresh(link)
    return link


@custom_links_router.delete("/{link_id}")
async def delete_custom_link(
    link_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    link = await _get_or_404(db, CustomLink, "Custom link", link_id)
    await db.delete(link)
    await log_action(db, current_admin.id, "custom_link_deleted", "custom_link", link_id,
                     details={"name": link.name}, request=request)
    await db.commit()
    return {"success": True, "message": "Link deleted"}
