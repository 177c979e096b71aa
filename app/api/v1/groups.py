"""Group management endpoints."""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, resolve_user
from app.core.permissions import get_membership, require_group_admin, require_group_member
from app.database import get_db
from app.models.group import (
    Group,
    GroupMember,
    MEMBERSHIP_ACCEPTED,
    MEMBERSHIP_PENDING,
    ROLE_ADMIN,
    ROLE_MEMBER,
)
from app.models.user import User
from app.schemas.group import (
    GroupCreate,
    GroupDetail,
    GroupInvite,
    GroupMemberResponse,
    GroupRoleUpdate,
    GroupSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_member_count(group_id: int, db: Session) -> int:
    """Get the number of accepted members in a group."""
    count = db.query(func.count(GroupMember.id)).filter(
        GroupMember.group_id == group_id,
        GroupMember.status == MEMBERSHIP_ACCEPTED,
    ).scalar()
    return count or 0


def get_admin_count(group_id: int, db: Session) -> int:
    """Get the number of accepted admins in a group."""
    count = db.query(func.count(GroupMember.id)).filter(
        GroupMember.group_id == group_id,
        GroupMember.status == MEMBERSHIP_ACCEPTED,
        GroupMember.role == ROLE_ADMIN,
    ).scalar()
    return count or 0


def summarize_group(group: Group, membership: GroupMember) -> GroupSummary:
    return GroupSummary(
        id=group.id,
        name=group.name,
        created_at=group.created_at,
        created_by=group.created_by,
        role=membership.role,
        status=membership.status,
    )


def list_memberships(user_id: int, membership_status: str, db: Session) -> List[GroupSummary]:
    """Groups in which ``user_id`` holds a membership with the given status."""
    rows = db.query(Group, GroupMember).join(
        GroupMember, GroupMember.group_id == Group.id
    ).filter(
        GroupMember.user_id == user_id,
        GroupMember.status == membership_status,
    ).order_by(Group.created_at.desc()).all()

    return [summarize_group(group, membership) for group, membership in rows]


def serialize_members(group_id: int, db: Session) -> List[GroupMemberResponse]:
    """Accepted members of a group, oldest first."""
    rows = db.query(User, GroupMember).join(
        GroupMember, GroupMember.user_id == User.id
    ).filter(
        GroupMember.group_id == group_id,
        GroupMember.status == MEMBERSHIP_ACCEPTED,
    ).order_by(GroupMember.joined_at.asc()).all()

    return [
        GroupMemberResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            username=user.username,
            role=membership.role,
            status=membership.status,
            joined_at=membership.joined_at,
        )
        for user, membership in rows
    ]


def leave(group: Group, membership: GroupMember, db: Session) -> None:
    """
    Remove an accepted member, enforcing the sole-admin rule.

    If the leaving member is the last one, the group is deleted.

    Raises:
        HTTPException: 409 if the member is the only admin and others remain
    """
    member_count = get_member_count(group.id, db)

    if member_count <= 1:
        # Last member leaving - delete the group
        db.delete(group)
        db.commit()
        logger.info("Group %s deleted after its last member left", group.id)
        return

    if membership.role == ROLE_ADMIN and get_admin_count(group.id, db) == 1:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You are the only admin; transfer the admin role or delete the group first"
        )

    db.delete(membership)
    db.commit()


@router.post("", response_model=GroupSummary, status_code=status.HTTP_201_CREATED)
def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a new group.

    The authenticated user becomes the creator and its first admin.

    Args:
        group_data: Group creation data (name)
        current_user: Authenticated user
        db: Database session

    Returns:
        Created group with the caller's role
    """
    new_group = Group(
        name=group_data.name,
        created_by=current_user.id
    )
    db.add(new_group)
    db.flush()

    # Creator is an accepted admin from the start
    membership = GroupMember(
        group_id=new_group.id,
        user_id=current_user.id,
        role=ROLE_ADMIN,
        status=MEMBERSHIP_ACCEPTED,
        joined_at=datetime.utcnow(),
    )
    db.add(membership)
    db.commit()
    db.refresh(new_group)
    db.refresh(membership)

    logger.info("User %s created group %s", current_user.id, new_group.id)
    return summarize_group(new_group, membership)


@router.get("", response_model=List[GroupSummary])
def list_groups(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List all groups the current user is an accepted member of.

    Args:
        current_user: Authenticated user
        db: Database session

    Returns:
        List of groups the user belongs to
    """
    return list_memberships(current_user.id, MEMBERSHIP_ACCEPTED, db)


@router.get("/invites", response_model=List[GroupSummary])
def list_invitations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List groups the caller has been invited to but not yet joined."""
    return list_memberships(current_user.id, MEMBERSHIP_PENDING, db)


@router.get("/{group_id}", response_model=GroupDetail)
def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get details of a specific group, including its members.

    Raises:
        HTTPException: 404 if group not found, 403 if not a member
    """
    group = require_group_member(db, group_id, current_user.id)

    return GroupDetail(
        id=group.id,
        name=group.name,
        created_at=group.created_at,
        created_by=group.created_by,
        members=serialize_members(group.id, db),
    )


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
def list_group_members(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List all accepted members of a group.

    Raises:
        HTTPException: 404 if group not found, 403 if not a member
    """
    require_group_member(db, group_id, current_user.id)
    return serialize_members(group_id, db)


@router.post("/{group_id}/invite", response_model=GroupMemberResponse, status_code=status.HTTP_201_CREATED)
def invite_member(
    group_id: int,
    invite_data: GroupInvite,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Invite a user to the group (admin-only).

    The invitee gets a pending membership they can accept or decline.

    Raises:
        HTTPException: 404 if group or user not found, 403 if not admin,
            409 if the user is already a member or already invited
    """
    require_group_admin(db, group_id, current_user.id)
    invitee = resolve_user(db, invite_data.identifier)

    existing = get_membership(db, group_id, invitee.id)
    if existing:
        if existing.status == MEMBERSHIP_ACCEPTED:
            detail = "User is already a member of this group"
        else:
            detail = "User already has a pending invitation"
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )

    membership = GroupMember(
        group_id=group_id,
        user_id=invitee.id,
        role=ROLE_MEMBER,
        status=MEMBERSHIP_PENDING,
        invited_by=current_user.id,
    )
    db.add(membership)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already has a pending invitation"
        )
    db.refresh(membership)

    logger.info("User %s invited user %s to group %s", current_user.id, invitee.id, group_id)
    return GroupMemberResponse(
        id=invitee.id,
        email=invitee.email,
        name=invitee.name,
        username=invitee.username,
        role=membership.role,
        status=membership.status,
        joined_at=membership.joined_at,
    )


def get_pending_invitation(group_id: int, user_id: int, db: Session) -> GroupMember:
    membership = get_membership(db, group_id, user_id)
    if not membership or membership.status != MEMBERSHIP_PENDING:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending invitation for this group"
        )
    return membership


@router.post("/{group_id}/accept", response_model=GroupSummary)
def accept_invitation(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Accept a pending invitation.

    Raises:
        HTTPException: 404 if the caller has no pending invitation
    """
    membership = get_pending_invitation(group_id, current_user.id, db)

    membership.status = MEMBERSHIP_ACCEPTED
    membership.joined_at = datetime.utcnow()
    db.commit()
    db.refresh(membership)

    logger.info("User %s joined group %s", current_user.id, group_id)
    return summarize_group(membership.group, membership)


@router.post("/{group_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
def decline_invitation(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Decline a pending invitation; the invitation row is deleted.

    Raises:
        HTTPException: 404 if the caller has no pending invitation
    """
    membership = get_pending_invitation(group_id, current_user.id, db)

    db.delete(membership)
    db.commit()

    return None


@router.patch("/{group_id}/members/{user_id}", response_model=GroupMemberResponse)
def update_member_role(
    group_id: int,
    user_id: int,
    role_data: GroupRoleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change a member's role (admin-only).

    Used to hand the admin role to someone else before leaving.

    Raises:
        HTTPException: 403 if not admin, 404 if the target is not a member,
            409 if this would leave the group without an admin
    """
    require_group_admin(db, group_id, current_user.id)

    membership = get_membership(db, group_id, user_id)
    if not membership or membership.status != MEMBERSHIP_ACCEPTED:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this group"
        )

    if (
        membership.role == ROLE_ADMIN
        and role_data.role == ROLE_MEMBER
        and get_admin_count(group_id, db) == 1
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A group must keep at least one admin"
        )

    membership.role = role_data.role
    db.commit()
    db.refresh(membership)

    user = membership.user
    return GroupMemberResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        username=user.username,
        role=membership.role,
        status=membership.status,
        joined_at=membership.joined_at,
    )


@router.post("/{group_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Leave a group (self-removal).

    The sole admin cannot leave while other members remain; they must
    promote someone else or delete the group. If the leaving member is
    the last member, the group is deleted.

    Raises:
        HTTPException: 404 if group not found, 403 if not a member,
            409 if the caller is the only admin
    """
    group = require_group_member(db, group_id, current_user.id)
    membership = get_membership(db, group_id, current_user.id)

    leave(group, membership, db)

    return None


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    group_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remove a member or revoke an invitation (admin-only).

    Removing yourself follows the same rules as leaving.

    Raises:
        HTTPException: 404 if group not found, 403 if not admin,
            404 if target user has no membership
    """
    group = require_group_admin(db, group_id, current_user.id)

    target = get_membership(db, group_id, user_id)
    if not target:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this group"
        )

    if user_id == current_user.id:
        leave(group, target, db)
        return None

    db.delete(target)
    db.commit()

    logger.info("User %s removed user %s from group %s", current_user.id, user_id, group_id)
    return None


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete a group with its memberships and comments (admin-only).

    Raises:
        HTTPException: 404 if group not found, 403 if not admin
    """
    group = require_group_admin(db, group_id, current_user.id)

    db.delete(group)
    db.commit()

    logger.info("User %s deleted group %s", current_user.id, group_id)
    return None
