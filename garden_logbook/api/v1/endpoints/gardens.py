import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.models.garden import Garden, GardenInvite, GardenLogVisibility, GardenMember
from garden_logbook.models.user import User
from garden_logbook.schemas.garden import (
    GardenCreate,
    GardenDetail,
    GardenInviteCreate,
    GardenInviteRead,
    GardenMemberRead,
    GardenMemberUpdate,
    GardenRead,
    GardenUpdate,
    LogVisibility,
    PendingInviteRead,
)
from garden_logbook.services.access import accessible_garden_ids, require_permission
from garden_logbook.services.change_log import record_entity_changes, snapshot
from garden_logbook.services.email import send_garden_invite_email
from garden_logbook.services.notifications import create_notifications
from garden_logbook.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gardens", tags=["gardens"])
invites_router = APIRouter(prefix="/invites", tags=["invites"])


# ── Gardens ──────────────────────────────────────────────────────────────────


@router.get("", response_model=list[GardenRead])
async def list_gardens(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Garden).where(Garden.id.in_(accessible_garden_ids(current_user.id))).order_by(Garden.name)
    )
    return result.scalars().all()


@router.post("", response_model=GardenRead, status_code=status.HTTP_201_CREATED)
async def create_garden(data: GardenCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    garden = Garden(**data.model_dump(), creator_id=current_user.id)
    db.add(garden)
    await db.commit()
    await db.refresh(garden)
    return garden


@router.get("/{garden_id}", response_model=GardenDetail)
async def get_garden(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    access = await require_permission(db, garden_id, current_user, "VIEW")
    members = await _list_members(db, garden_id)
    return GardenDetail(
        **GardenRead.model_validate(access.garden).model_dump(),
        members=[GardenMemberRead.model_validate(m) for m in members],
        permissions=sorted(access.permissions),
    )


@router.patch("/{garden_id}", response_model=GardenRead)
async def update_garden(
    garden_id: int, data: GardenUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    access = await require_permission(db, garden_id, current_user, "EDIT")
    garden = access.garden
    before = snapshot("garden", garden)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(garden, field, value)
    await db.commit()
    await db.refresh(garden)
    response = GardenRead.model_validate(garden)
    await record_entity_changes(
        db, "garden", garden.id, garden.name, before, snapshot("garden", garden), current_user
    )
    return response


@router.delete("/{garden_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_garden(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    access = await require_permission(db, garden_id, current_user, "VIEW")
    if not access.is_creator:
        raise HTTPException(status_code=403, detail="Only the garden creator can delete this garden")
    await db.delete(access.garden)
    await db.commit()


# ── Log visibility ───────────────────────────────────────────────────────────


@router.get("/{garden_id}/log-visibility", response_model=LogVisibility)
async def get_log_visibility(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "VIEW")
    preference = await _get_log_visibility(db, garden_id, current_user.id)
    return LogVisibility(show_logs=preference.show_logs if preference else True)


@router.put("/{garden_id}/log-visibility", response_model=LogVisibility)
async def set_log_visibility(
    garden_id: int, data: LogVisibility, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_permission(db, garden_id, current_user, "VIEW")
    preference = await _get_log_visibility(db, garden_id, current_user.id)
    if preference is None:
        preference = GardenLogVisibility(garden_id=garden_id, user_id=current_user.id)
        db.add(preference)
    preference.show_logs = data.show_logs
    await db.commit()
    return LogVisibility(show_logs=preference.show_logs)


# ── Members ──────────────────────────────────────────────────────────────────


@router.get("/{garden_id}/members", response_model=list[GardenMemberRead])
async def list_members(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "VIEW")
    return await _list_members(db, garden_id)


@router.patch("/{garden_id}/members/{member_id}", response_model=GardenMemberRead)
async def update_member(
    garden_id: int,
    member_id: int,
    data: GardenMemberUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await require_permission(db, garden_id, current_user, "MANAGE")
    member = await _get_member(db, garden_id, member_id)
    member.permissions = sorted(set(data.permissions))
    await db.commit()
    return (await _list_members(db, garden_id, member_id=member.id))[0]


@router.delete("/{garden_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    garden_id: int, member_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    access = await require_permission(db, garden_id, current_user, "VIEW")
    member = await _get_member(db, garden_id, member_id)
    # Members may always leave; removing someone else needs MANAGE
    if member.user_id != current_user.id and not access.can("MANAGE"):
        raise HTTPException(status_code=403, detail="MANAGE permission required")
    await db.delete(member)
    await db.commit()


# ── Invites (garden side) ────────────────────────────────────────────────────


@router.get("/{garden_id}/invites", response_model=list[GardenInviteRead])
async def list_invites(garden_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    await require_permission(db, garden_id, current_user, "INVITE")
    result = await db.execute(
        select(GardenInvite).where(GardenInvite.garden_id == garden_id).order_by(GardenInvite.created_at.desc())
    )
    return result.scalars().all()


@router.post("/{garden_id}/invites", response_model=GardenInviteRead, status_code=status.HTTP_201_CREATED)
async def create_invite(
    garden_id: int, data: GardenInviteCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    access = await require_permission(db, garden_id, current_user, "INVITE")
    garden = access.garden
    email = data.email.lower()

    invitee = await get_user_by_email(db, email)
    if invitee is not None:
        if invitee.id == garden.creator_id:
            raise HTTPException(status_code=400, detail="User is the garden creator")
        existing_member = await db.scalar(
            select(GardenMember.id).where(GardenMember.garden_id == garden_id, GardenMember.user_id == invitee.id)
        )
        if existing_member:
            raise HTTPException(status_code=400, detail="User is already a member of this garden")

    invite = await db.scalar(
        select(GardenInvite).where(GardenInvite.garden_id == garden_id, GardenInvite.email == email)
    )
    if invite is not None and invite.status == "pending":
        raise HTTPException(status_code=400, detail="An invite is already pending for this email")
    if invite is None:
        invite = GardenInvite(garden_id=garden_id, email=email)
        db.add(invite)
    invite.inviter_id = current_user.id
    invite.permissions = sorted(set(data.permissions))
    invite.status = "pending"
    await db.flush()

    if invitee is not None:
        await create_notifications(
            db,
            [invitee.id],
            "GARDEN_INVITE",
            title=f"Invitation to {garden.name}",
            message=f"{current_user.name} invited you to join the garden {garden.name}.",
            link="/gardens/invites",
            meta={"kind": "garden_invite", "invite_id": invite.id, "garden_id": garden.id, "garden_name": garden.name},
        )
    await db.commit()
    await db.refresh(invite)

    await send_garden_invite_email(email, garden.name, current_user.name)
    return invite


@router.delete("/{garden_id}/invites/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invite(
    garden_id: int, invite_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await require_permission(db, garden_id, current_user, "INVITE")
    invite = await db.get(GardenInvite, invite_id)
    if invite is None or invite.garden_id != garden_id:
        raise HTTPException(status_code=404, detail="Invite not found")
    await db.delete(invite)
    await db.commit()


# ── Invites (invitee side, prefix /invites) ──────────────────────────────────


@invites_router.get("/pending", response_model=list[PendingInviteRead])
async def list_pending_invites(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(GardenInvite, Garden.name)
        .join(Garden, GardenInvite.garden_id == Garden.id)
        .where(GardenInvite.email == current_user.email.lower(), GardenInvite.status == "pending")
        .order_by(GardenInvite.created_at.desc())
    )
    return [
        PendingInviteRead(**GardenInviteRead.model_validate(invite).model_dump(), garden_name=garden_name)
        for invite, garden_name in result.all()
    ]


@invites_router.post("/{invite_id}/accept", response_model=GardenMemberRead)
async def accept_invite(invite_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    invite = await _get_pending_invite(db, invite_id, current_user)
    member = await db.scalar(
        select(GardenMember).where(
            GardenMember.garden_id == invite.garden_id, GardenMember.user_id == current_user.id
        )
    )
    if member is None:
        member = GardenMember(garden_id=invite.garden_id, user_id=current_user.id, added_by_id=invite.inviter_id)
        db.add(member)
    member.permissions = list(invite.permissions or ["VIEW"])
    invite.status = "accepted"
    await db.commit()
    logger.info("invites: user %d joined garden %d", current_user.id, invite.garden_id)
    return (await _list_members(db, invite.garden_id, member_id=member.id))[0]


@invites_router.post("/{invite_id}/decline", response_model=GardenInviteRead)
async def decline_invite(invite_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    invite = await _get_pending_invite(db, invite_id, current_user)
    invite.status = "declined"
    await db.commit()
    await db.refresh(invite)
    return invite


# ── Helpers ───────────────────────────────────────────────────────────────────


async def _list_members(db: AsyncSession, garden_id: int, member_id: int | None = None) -> list[GardenMember]:
    query = (
        select(GardenMember)
        .options(selectinload(GardenMember.user))
        .where(GardenMember.garden_id == garden_id)
        .order_by(GardenMember.id)
        .execution_options(populate_existing=True)
    )
    if member_id is not None:
        query = query.where(GardenMember.id == member_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _get_member(db: AsyncSession, garden_id: int, member_id: int) -> GardenMember:
    member = await db.get(GardenMember, member_id)
    if member is None or member.garden_id != garden_id:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


async def _get_pending_invite(db: AsyncSession, invite_id: int, user: User) -> GardenInvite:
    invite = await db.get(GardenInvite, invite_id)
    if invite is None or invite.email != user.email.lower():
        raise HTTPException(status_code=404, detail="Invite not found")
    if invite.status != "pending":
        raise HTTPException(status_code=400, detail=f"Invite already {invite.status}")
    return invite


async def _get_log_visibility(db: AsyncSession, garden_id: int, user_id: int):
    result = await db.execute(
        select(GardenLogVisibility).where(
            GardenLogVisibility.garden_id == garden_id, GardenLogVisibility.user_id == user_id
        )
    )
    return result.scalar_one_or_none()
