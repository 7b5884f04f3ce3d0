"""Tests for staff and SK-official identity mapping."""

from __future__ import annotations

from sqlalchemy import func, select

from survey_validation.core.models import Actor, UserType
from survey_validation.data import UsersTableIdentityResolver
from survey_validation.db.tables import User


class TestUsersTableIdentityResolver:
    def test_creates_mapping_for_staff_once(self, session_factory, seed, staff_actor):
        resolver = UsersTableIdentityResolver()

        with session_factory() as session, session.begin():
            first = resolver.resolve_user_id(session, staff_actor)
        with session_factory() as session, session.begin():
            second = resolver.resolve_user_id(session, staff_actor)

        assert first is not None and first.startswith("USR")
        assert second == first
        with session_factory() as session:
            user = session.get(User, first)
            assert user.lydo_id == "LYDO001"
            assert user.sk_id is None
            assert user.user_type == "lydo_staff"

    def test_sk_official_maps_through_sk_id(self, session_factory, seed, sk_actor):
        with session_factory() as session, session.begin():
            user_id = UsersTableIdentityResolver().resolve_user_id(session, sk_actor)

        with session_factory() as session:
            user = session.get(User, user_id)
            assert user.sk_id == "SK001"
            assert user.lydo_id is None

    def test_admin_is_resolved_through_staff(self, session_factory, seed):
        admin = Actor(user_id="LYDO001", user_type=UserType.ADMIN)

        with session_factory() as session, session.begin():
            assert UsersTableIdentityResolver().resolve_user_id(session, admin) is not None

    def test_unknown_actor_is_not_mapped(self, session_factory, seed):
        stranger = Actor(user_id="LYDO999", user_type=UserType.LYDO_STAFF)

        with session_factory() as session, session.begin():
            assert UsersTableIdentityResolver().resolve_user_id(session, stranger) is None

        with session_factory() as session:
            assert session.execute(select(func.count()).select_from(User)).scalar_one() == 0

    def test_rolled_back_transaction_discards_mapping(self, session_factory, seed, staff_actor):
        with session_factory() as session:
            session.begin()
            UsersTableIdentityResolver().resolve_user_id(session, staff_actor)
            session.rollback()

        with session_factory() as session:
            assert session.execute(select(func.count()).select_from(User)).scalar_one() == 0
