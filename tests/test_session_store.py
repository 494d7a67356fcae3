"""
Tests for the session store and user profile model.
"""

import pytest

from models.session import SessionStore, STORAGE_KEYS, EMPTY_SESSION
from models.user import UserProfile, Role


@pytest.fixture
def user():
    return UserProfile.from_dict({
        'customer_id': 3, 'email': 'khach@homestay.vn', 'full_name': 'Nguyễn Văn A',
        'role': 'customer', 'is_active': 1, 'avatar': 'a.png',
    })


class TestUserProfile:
    """Tests for UserProfile parsing."""

    def test_from_dict_accepts_customer_id(self, user):
        assert user.id == 3
        assert user.role == Role.CUSTOMER
        assert user.is_active is True
        assert user.get('avatar') == 'a.png'

    def test_inactive_flag_from_integer(self):
        profile = UserProfile.from_dict({'id': 1, 'email': 'a@b.vn', 'is_active': 0})
        assert profile.is_active is False

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            UserProfile.from_dict({'id': 1, 'email': 'a@b.vn', 'role': 'superuser'})

    def test_missing_id_and_email_accepted(self):
        profile = UserProfile.from_dict({'role': 'admin', 'is_active': True})

        assert profile.id is None
        assert profile.email == ''
        assert profile.role is Role.ADMIN
        assert profile.get_id() == 'admin'

    def test_get_id_falls_back_to_email(self):
        assert UserProfile.from_dict({'email': 'a@b.vn'}).get_id() == 'a@b.vn'
        assert UserProfile.from_dict({'id': 7, 'email': 'a@b.vn'}).get_id() == '7'

    def test_password_never_kept(self):
        profile = UserProfile.from_dict({'id': 1, 'email': 'a@b.vn', 'password': 'secret'})
        assert 'password' not in profile.to_dict()

    def test_immutable(self, user):
        with pytest.raises(AttributeError):
            user.role = Role.ADMIN

    def test_round_trip_through_dict(self, user):
        assert UserProfile.from_dict(user.to_dict()) == user


class TestSessionStore:
    """Tests for SessionStore read/write/clear."""

    def test_read_empty(self):
        assert SessionStore({}).read() is EMPTY_SESSION

    def test_write_then_read(self, user):
        storage = {}
        store = SessionStore(storage, clock=lambda: 1000.0)

        store.write('tok', user)
        session = store.read()

        assert session.token == 'tok'
        assert session.user == user
        assert session.validated_at == 1000.0
        assert set(storage) == {STORAGE_KEYS['session']}

    def test_write_requires_token_and_user(self, user):
        store = SessionStore({})
        with pytest.raises(ValueError):
            store.write('', user)
        with pytest.raises(ValueError):
            store.write('tok', None)

    def test_malformed_record_is_discarded(self):
        storage = {STORAGE_KEYS['session']: {'token': 'tok', 'user': {'email': 'a@b.vn', 'role': 'superuser'}}}
        store = SessionStore(storage)

        assert store.read().is_empty
        assert STORAGE_KEYS['session'] not in storage

    def test_clear_is_idempotent(self, user):
        store = SessionStore({})
        store.write('tok', user)

        store.clear()
        store.clear()

        assert store.read().is_empty

    def test_search_history_and_preferences(self):
        store = SessionStore({})
        store.set_search_history(['phòng đôi', 'view biển'])
        store.set_preference('language', 'vi')

        assert store.get_search_history() == ['phòng đôi', 'view biển']
        assert store.get_preferences() == {'language': 'vi'}
