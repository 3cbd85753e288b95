from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from models.emergency_alert import EmergencyAlert
from models.profile import Profile, AppRole
from models.tourist_session import TouristSession
from models.user import User, ProvisioningError


def test_signup_creates_exactly_one_tourist_profile(client, db):
    r = client.post("/auth/signup", json={"email": "ana@example.com", "password": "pw", "data": {"full_name": "Ana"}})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["profile"]["role"] == "tourist"
    assert body["profile"]["full_name"] == "Ana"
    assert body["profile"]["phone"] is None

    profiles = db.query(Profile).filter(Profile.user_id == body["id"]).all()
    assert len(profiles) == 1


def test_signup_without_metadata_uses_defaults(client):
    r = client.post("/auth/signup", json={"email": "anon@example.com", "password": "pw"})
    assert r.status_code == 201, r.text
    profile = r.json()["profile"]
    assert profile["full_name"] == "User"
    assert profile["role"] == "tourist"
    assert profile["country"] is None


def test_signup_copies_contact_metadata(client):
    data = {
        "full_name": "Kenji",
        "role": "tourist",
        "phone": "+81 90 0000 0000",
        "emergency_contact_name": "Aiko",
        "emergency_contact_phone": "+81 90 1111 1111",
        "country": "Japan",
        "unrelated": "ignored",
    }
    r = client.post("/auth/signup", json={"email": "kenji@example.com", "password": "pw", "data": data})
    assert r.status_code == 201, r.text
    profile = r.json()["profile"]
    for key in ("phone", "emergency_contact_name", "emergency_contact_phone", "country"):
        assert profile[key] == data[key]


def test_invalid_role_aborts_the_whole_signup(client, db):
    r = client.post(
        "/auth/signup",
        json={"email": "mallory@example.com", "password": "pw", "data": {"full_name": "M", "role": "superuser"}},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Database error saving new user"
    assert db.query(User).filter(User.email == "mallory@example.com").count() == 0
    assert db.query(Profile).count() == 0


def test_invalid_role_raises_at_flush(db):
    db.add(User(email="direct@example.com", password_hash="x", raw_user_meta_data={"role": ""}))
    with pytest.raises(ProvisioningError):
        db.commit()
    db.rollback()
    assert db.query(User).count() == 0


def test_duplicate_email_rejected(client):
    payload = {"email": "dup@example.com", "password": "pw"}
    assert client.post("/auth/signup", json=payload).status_code == 201
    r = client.post("/auth/signup", json=payload)
    assert r.status_code == 400


def test_default_admin_is_provisioned_as_admin(db):
    from main import ensure_default_admin
    from core.config import settings

    admin = ensure_default_admin()
    profile = db.query(Profile).filter(Profile.user_id == admin.id).one()
    assert profile.role == AppRole.admin
    assert profile.full_name == settings.ADMIN_NAME
    # idempotent
    assert ensure_default_admin().id == admin.id


def test_updated_at_is_stamped_on_update(client, db, signup):
    user = signup()
    profile = db.query(Profile).filter(Profile.user_id == user["id"]).one()
    profile.full_name = "Renamed"
    profile.updated_at = datetime(2000, 1, 1, tzinfo=timezone.utc)
    db.commit()
    db.refresh(profile)
    assert profile.full_name == "Renamed"
    assert profile.updated_at.year > 2000

    client.post("/sessions/start", json={"lat": 1.0, "lng": 2.0}, headers=user["headers"])
    session = db.query(TouristSession).filter(TouristSession.user_id == user["id"]).one()
    session.updated_at = datetime(2000, 1, 1, tzinfo=timezone.utc)
    session.safety_status = "alert"
    db.commit()
    db.refresh(session)
    assert session.updated_at.year > 2000


def test_deleting_user_cascades(client, db, signup):
    user = signup()
    client.post("/sessions/start", json={"lat": 1.0, "lng": 2.0}, headers=user["headers"])
    client.post("/alerts/panic", json={"lat": 1.0, "lng": 2.0}, headers=user["headers"])

    db.delete(db.get(User, user["id"]))
    db.commit()
    assert db.query(Profile).filter(Profile.user_id == user["id"]).count() == 0
    assert db.query(TouristSession).filter(TouristSession.user_id == user["id"]).count() == 0
    assert db.query(EmergencyAlert).filter(EmergencyAlert.user_id == user["id"]).count() == 0


def test_staff_who_resolved_alerts_cannot_be_deleted(client, db, signup):
    tourist = signup()
    admin = signup(role="admin")
    alert = client.post("/alerts/panic", json={"lat": 1.0, "lng": 2.0}, headers=tourist["headers"]).json()
    assert client.post(f"/alerts/{alert['id']}/resolve", headers=admin["headers"]).status_code == 200

    db.delete(db.get(User, admin["id"]))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
