from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from core.policies import (
    POLICIES, SELECT, INSERT, UPDATE, DELETE, allowed, authorize, get_user_role, get_visible, visible,
)
from models.emergency_alert import EmergencyAlert
from models.profile import AppRole
from models.tourist_session import TouristSession


def _row(table, user_id):
    return SimpleNamespace(__tablename__=table, user_id=user_id)


OWNER, OTHER = 1, 2

# (table, action, role, owner?, expected)
CASES = [
    ("profiles", SELECT, AppRole.tourist, True, True),
    ("profiles", SELECT, AppRole.tourist, False, False),
    ("profiles", SELECT, AppRole.police, False, True),
    ("profiles", UPDATE, AppRole.tourist, True, True),
    ("profiles", UPDATE, AppRole.admin, False, False),
    ("profiles", INSERT, AppRole.tourist, False, False),
    ("profiles", DELETE, AppRole.admin, True, False),
    ("tourist_sessions", SELECT, AppRole.admin, False, True),
    ("tourist_sessions", SELECT, None, False, False),
    ("tourist_sessions", UPDATE, AppRole.police, False, False),
    ("tourist_sessions", DELETE, AppRole.tourist, True, True),
    ("tourist_sessions", INSERT, AppRole.tourist, False, False),
    ("emergency_alerts", INSERT, AppRole.tourist, True, True),
    ("emergency_alerts", INSERT, AppRole.admin, False, False),
    ("emergency_alerts", SELECT, AppRole.tourist, False, False),
    ("emergency_alerts", SELECT, AppRole.police, False, True),
    ("emergency_alerts", UPDATE, AppRole.tourist, True, False),
    ("emergency_alerts", UPDATE, AppRole.admin, False, True),
    ("emergency_alerts", UPDATE, None, True, False),
    ("emergency_alerts", DELETE, AppRole.admin, True, False),
]


@pytest.mark.parametrize("table,action,role,owner,expected", CASES)
def test_policy_matrix(table, action, role, owner, expected):
    row = _row(table, OWNER if owner else OTHER)
    assert allowed(action, OWNER, row, role) is expected


def test_every_table_defines_all_actions():
    for policy in POLICIES.values():
        for action in (SELECT, INSERT, UPDATE, DELETE):
            assert callable(getattr(policy, action))


def test_role_lookup(db, signup):
    police = signup(role="police")
    assert get_user_role(db, police["id"]) == AppRole.police
    assert get_user_role(db, 424242) is None
    assert get_user_role(db, None) is None


def test_authorize_raises_403(db, signup):
    tourist = signup()
    row = _row("emergency_alerts", tourist["id"])
    with pytest.raises(HTTPException) as exc:
        authorize(db, tourist["id"], UPDATE, row)
    assert exc.value.status_code == 403
    assert authorize(db, tourist["id"], INSERT, row) == AppRole.tourist


def test_visible_scopes_rows_to_owner_unless_elevated(client, db, signup):
    alice = signup()
    bob = signup()
    admin = signup(role="admin")
    for user in (alice, bob):
        client.post("/sessions/start", json={"lat": 1.0, "lng": 2.0}, headers=user["headers"])
        client.post("/alerts/panic", json={}, headers=user["headers"])

    for model in (TouristSession, EmergencyAlert):
        own = visible(db, alice["id"], model).all()
        assert {r.user_id for r in own} == {alice["id"]}
        assert len(visible(db, admin["id"], model).all()) == 2
        # no profile, no role, nothing visible
        assert visible(db, 424242, model).all() == []

    bobs_alert = visible(db, bob["id"], EmergencyAlert).one()
    assert get_visible(db, alice["id"], EmergencyAlert, bobs_alert.id) is None
    assert get_visible(db, admin["id"], EmergencyAlert, bobs_alert.id).id == bobs_alert.id
