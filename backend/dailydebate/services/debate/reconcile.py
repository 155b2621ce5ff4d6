from typing import Optional

from flask import current_app
from sqlalchemy import select, update

from dailydebate import db
from dailydebate.models import Answer, Participation
from .stats import ensure_user_stats


IP_MAX_LENGTH = 45


def normalize_ip(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    ip = raw.split(',')[0].strip()
    if ip.lower().startswith('::ffff:') and '.' in ip:
        ip = ip[len('::ffff:'):]
    return ip[:IP_MAX_LENGTH] or None


def client_ip(request) -> Optional[str]:
    """Network identity of the caller, as stored on anonymous answers."""
    if current_app.config.get('TRUST_PROXY_HEADERS'):
        forwarded = request.headers.get('X-Forwarded-For')
        if forwarded:
            return normalize_ip(forwarded)
    return normalize_ip(request.remote_addr)


def reconcile(user_id: int, ip_address: Optional[str]) -> int:
    """Hand anonymous answers from this IP to the user and backfill participations.

    Questions the user already answered under their account keep that
    answer; the anonymous one stays anonymous. Streaks and XP are not
    replayed for claimed answers. Returns the number of claimed answers.
    """
    ip = normalize_ip(ip_address)
    try:
        claimed = 0
        if ip:
            already_answered = select(Answer.question_id).where(Answer.user_id == user_id)
            result = db.session.execute(
                update(Answer)
                .where(
                    Answer.user_id.is_(None),
                    Answer.ip_address == ip,
                    Answer.question_id.notin_(already_answered),
                )
                .values(user_id=user_id)
                .execution_options(synchronize_session=False)
            )
            claimed = result.rowcount

        ensure_user_stats(user_id)

        missing = db.session.execute(
            select(Answer.question_id)
            .outerjoin(
                Participation,
                (Participation.question_id == Answer.question_id) & (Participation.user_id == user_id),
            )
            .where(Answer.user_id == user_id, Participation.id.is_(None))
            .distinct()
        ).scalars().all()
        for question_id in missing:
            db.session.add(Participation(user_id=user_id, question_id=question_id))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if claimed or missing:
        current_app.logger.info(
            f"[reconcile] user={user_id} ip={ip} claimed={claimed} participations={len(missing)}"
        )
    return claimed
