"""Identity resolution for adjudicators.

Staff members and SK officials each have a row in `users` carrying the
canonical user id that profiles and notifications reference. The row is
created the first time an actor needs it.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from ..core.models import Actor, UserType
from ..db.tables import SKOfficial, Staff, User
from ..shared.date_utils import utc_now
from ..shared.ids import new_user_id

logger = logging.getLogger(__name__)


class UsersTableIdentityResolver:
    """Resolves staff and SK-official ids to canonical user ids"""

    def resolve_user_id(self, session: Session, actor: Actor) -> str | None:
        """Return the canonical user id for an actor, creating the mapping row if needed.

        Runs inside the caller's transaction so a lazily created row commits
        or rolls back with the adjudication.

        Returns:
            The user id, or None when the actor has no staff or SK record
        """
        if actor.user_type is UserType.SK_OFFICIAL:
            return self._resolve(session, actor, User.sk_id, SKOfficial)
        return self._resolve(session, actor, User.lydo_id, Staff)

    def _resolve(
        self,
        session: Session,
        actor: Actor,
        column: InstrumentedAttribute[str | None],
        source: type[Staff] | type[SKOfficial],
    ) -> str | None:
        existing = session.execute(select(User.user_id).where(column == actor.user_id)).scalar_one_or_none()
        if existing:
            return existing

        if session.get(source, actor.user_id) is None:
            logger.debug(f"No {source.__tablename__} record for {actor.user_id}; identity not mapped")
            return None

        now = utc_now()
        user = User(
            user_id=new_user_id(),
            user_type=actor.user_type.value,
            lydo_id=actor.user_id if source is Staff else None,
            sk_id=actor.user_id if source is SKOfficial else None,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        session.flush()
        logger.info(f"Created users entry {user.user_id} for {actor.user_type.value} {actor.user_id}")
        return user.user_id
