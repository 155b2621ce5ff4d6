from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from dailydebate import db
from dailydebate.models import UserStats


def ensure_user_stats(user_id: int) -> None:
    """Create the user's stats row if missing; never touches an existing row.

    Runs inside the caller's transaction.
    """
    dialect = db.session.get_bind().dialect.name
    if dialect in ('postgresql', 'sqlite'):
        insert = pg_insert if dialect == 'postgresql' else sqlite_insert
        stmt = insert(UserStats).values(user_id=user_id).on_conflict_do_nothing(index_elements=['user_id'])
        db.session.execute(stmt)
        return
    if db.session.get(UserStats, user_id) is not None:
        return
    try:
        with db.session.begin_nested():
            db.session.add(UserStats(user_id=user_id))
    except IntegrityError:
        # created by a concurrent request between the read and the insert
        pass


def get_user_stats(user_id: int):
    return db.session.get(UserStats, user_id)
