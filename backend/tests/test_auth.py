"""Tests for authentication: hashing, tokens, register/login/logout and RBAC."""

import pytest
import redis
from datetime import datetime, timedelta, timezone

from foodie.core.rbac import UserRole
from foodie.core.security import (
    TokenBlacklist,
    blacklist_token,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from foodie.models.user import User

API = "/api/v1"


# ============== Password hashing ==============

class TestPasswordHashing:
    def test_hash_and_verify(self):
        h = get_password_hash("secret123")
        assert verify_password("secret123", h)

    def test_wrong_password_rejected(self):
        h = get_password_hash("secret123")
        assert not verify_password("wrong", h)

    def test_invalid_hash_returns_false(self):
        assert not verify_password("test", "not-a-hash")


# ============== JWT tokens ==============

class TestJWTTokens:
    def test_create_and_decode(self):
        token = create_access_token(data={"sub": "1", "role": "customer"})
        payload = decode_access_token(token)
        assert payload["sub"] == "1"
        assert payload["role"] == "customer"
        assert "jti" in payload

    def test_expired_token(self):
        token = create_access_token(data={"sub": "1", "role": "customer"}, expires_delta=timedelta(seconds=-5))
        assert decode_access_token(token) is None

    def test_garbage_token(self):
        assert decode_access_token("not.a.token") is None

    def test_blacklisted_token(self):
        token = create_access_token(data={"sub": "1", "role": "customer"})
        assert blacklist_token(token)
        assert decode_access_token(token) is None


class RecordingRedis:
    """In-memory stand-in for the redis client calls the blacklist makes."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.values = {}

    def setex(self, key, ttl, value):
        if self.fail:
            raise redis.ConnectionError("redis down")
        self.values[key] = (ttl, value)

    def exists(self, key):
        if self.fail:
            raise redis.ConnectionError("redis down")
        return int(key in self.values)


class TestTokenBlacklist:
    def test_memory_only(self):
        blacklist = TokenBlacklist()
        blacklist.add("abc", datetime.now(timezone.utc) + timedelta(minutes=5))
        assert "abc" in blacklist
        assert "other" not in blacklist

    def test_expired_entries_are_forgotten(self):
        blacklist = TokenBlacklist()
        blacklist.add("old", datetime.now(timezone.utc) - timedelta(seconds=1))
        assert "old" not in blacklist

    def test_revocations_go_to_redis_with_ttl(self):
        client = RecordingRedis()
        blacklist = TokenBlacklist(redis_client=client)
        blacklist.add("abc", datetime.now(timezone.utc) + timedelta(minutes=5))
        ttl, value = client.values["token_blacklist:abc"]
        assert 0 < ttl <= 300
        assert value == "1"
        assert "abc" in TokenBlacklist(redis_client=client)

    def test_falls_back_to_memory_when_redis_is_down(self):
        blacklist = TokenBlacklist(redis_client=RecordingRedis(fail=True))
        blacklist.add("abc", datetime.now(timezone.utc) + timedelta(minutes=5))
        assert "abc" in blacklist


# ============== Register / login ==============

class TestRegister:
    def test_register_with_email(self, client):
        res = client.post(f"{API}/auth/register", json={
            "name": "New Person", "email": "New@Example.com", "password": "secret123",
        })
        assert res.status_code == 201, res.text
        data = res.json()
        assert data["access_token"]
        assert data["user"]["email"] == "new@example.com"
        assert data["user"]["role"] == "customer"
        assert data["user"]["loyalty_points"] == 0

    def test_register_with_phone_only(self, client):
        res = client.post(f"{API}/auth/register", json={
            "name": "Phone Person", "phone": "+15550001", "password": "secret123",
        })
        assert res.status_code == 201

    def test_register_needs_email_or_phone(self, client):
        res = client.post(f"{API}/auth/register", json={"name": "Nobody", "password": "secret123"})
        assert res.status_code == 400

    def test_register_short_password(self, client):
        res = client.post(f"{API}/auth/register", json={
            "name": "Short", "email": "short@example.com", "password": "123",
        })
        assert res.status_code == 400

    def test_register_duplicate(self, client, customer):
        res = client.post(f"{API}/auth/register", json={
            "name": "Again", "email": customer.email, "password": "secret123",
        })
        assert res.status_code == 400


class TestLogin:
    def test_login_by_email(self, client, customer):
        res = client.post(f"{API}/auth/login", json={"identifier": customer.email, "password": "testpass123"})
        assert res.status_code == 200
        assert res.json()["user"]["id"] == customer.id

    def test_login_by_phone(self, client, db_session):
        user = User(name="Phone", phone="+15551234", password_hash=get_password_hash("pw123456"),
                    role=UserRole.CUSTOMER, loyalty_points=0, favorite_restaurants=[], is_active=True)
        db_session.add(user)
        db_session.commit()
        res = client.post(f"{API}/auth/login", json={"identifier": "+15551234", "password": "pw123456"})
        assert res.status_code == 200

    def test_wrong_password(self, client, customer):
        res = client.post(f"{API}/auth/login", json={"identifier": customer.email, "password": "nope"})
        assert res.status_code == 401

    def test_inactive_user(self, client, db_session, customer):
        customer.is_active = False
        db_session.commit()
        res = client.post(f"{API}/auth/login", json={"identifier": customer.email, "password": "testpass123"})
        assert res.status_code == 401


class TestSession:
    def test_me(self, client, customer, customer_headers):
        res = client.get(f"{API}/auth/me", headers=customer_headers)
        assert res.status_code == 200
        assert res.json()["email"] == customer.email

    def test_me_requires_token(self, client):
        assert client.get(f"{API}/auth/me").status_code == 401

    def test_logout_revokes_token(self, client, customer):
        login = client.post(f"{API}/auth/login", json={"identifier": customer.email, "password": "testpass123"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        assert client.post(f"{API}/auth/logout", headers=headers).status_code == 200
        assert client.get(f"{API}/auth/me", headers=headers).status_code == 401

    def test_disabled_account_token_rejected(self, client, db_session, customer, customer_headers):
        customer.is_active = False
        db_session.commit()
        assert client.get(f"{API}/auth/me", headers=customer_headers).status_code == 401


class TestRoles:
    def test_customer_cannot_create_restaurant(self, client, customer_headers):
        res = client.post(f"{API}/restaurants", json={"name": "Mine"}, headers=customer_headers)
        assert res.status_code == 403

    def test_staff_cannot_see_admin_stats(self, client, staff_headers):
        assert client.get(f"{API}/admin/stats", headers=staff_headers).status_code == 403
