"""Row-level access policies for the application tables.

Every table gets four predicates, one per action, each answering "may this
caller touch this row" from `(caller_id, row, role)`. `role` is resolved with
`get_user_role`, which reads `profiles` directly and so never passes through
the predicates it feeds. A caller without a profile has no role and is never
elevated.
"""
import logging
from collections import namedtuple
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import true
from sqlalchemy.orm import Session

from models.profile import Profile, AppRole, ELEVATED_ROLES

logger = logging.getLogger(__name__)

SELECT = "select"
INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

TablePolicy = namedtuple("TablePolicy", [SELECT, INSERT, UPDATE, DELETE])


def get_user_role(db: Session, user_id) -> Optional[AppRole]:
    """Return the role recorded on `user_id`'s profile, or None without one."""
    if user_id is None:
        return None
    return db.query(Profile.role).filter(Profile.user_id == user_id).scalar()


def is_elevated(role: Optional[AppRole]) -> bool:
    return role in ELEVATED_ROLES


def _owns(caller_id, row) -> bool:
    return caller_id is not None and caller_id == row.user_id


def _own_or_elevated(caller_id, row, role) -> bool:
    return _owns(caller_id, row) or is_elevated(role)


def _own(caller_id, row, role) -> bool:
    return _owns(caller_id, row)


def _elevated(caller_id, row, role) -> bool:
    return is_elevated(role)


def _never(caller_id, row, role) -> bool:
    return False


POLICIES = {
    "profiles": TablePolicy(select=_own_or_elevated, insert=_own, update=_own, delete=_never),
    "tourist_sessions": TablePolicy(select=_own_or_elevated, insert=_own, update=_own, delete=_own),
    # owners cannot resolve their own alerts; staff cannot create them for others
    "emergency_alerts": TablePolicy(select=_own_or_elevated, insert=_own, update=_elevated, delete=_never),
}


def allowed(action: str, caller_id, row, role: Optional[AppRole]) -> bool:
    policy = POLICIES[row.__tablename__]
    return bool(getattr(policy, action)(caller_id, row, role))


def authorize(db: Session, caller_id, action: str, row, role: Optional[AppRole] = None):
    """Raise 403 unless `caller_id` may perform `action` on `row`.

    The role is looked up when not supplied.
    """
    if role is None:
        role = get_user_role(db, caller_id)
    if not allowed(action, caller_id, row, role):
        logger.info("Denied %s on %s for user %s", action, row.__tablename__, caller_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return role


def visible(db: Session, caller_id, model, role: Optional[AppRole] = None):
    """Query over `model` limited to the rows its select policy admits.

    Every policed table shares the rule "own rows, or all rows when elevated",
    so the predicate translates to a single filter.
    """
    if role is None:
        role = get_user_role(db, caller_id)
    criterion = true() if is_elevated(role) else model.user_id == caller_id
    return db.query(model).filter(criterion)


def get_visible(db: Session, caller_id, model, row_id, role: Optional[AppRole] = None):
    """Fetch one row by id; rows the caller may not select look absent."""
    if role is None:
        role = get_user_role(db, caller_id)
    row = db.query(model).filter(model.id == row_id).first()
    if row is None or not allowed(SELECT, caller_id, row, role):
        return None
    return row
