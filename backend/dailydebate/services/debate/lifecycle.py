"""Question lifecycle: scheduled -> active -> closed.

rollover() is the only place a question changes status. Closing, settling,
ranking and activating the next question commit together or not at all.
Every transition is a conditional update, so concurrent triggers cannot
close or activate the same question twice.

Scheduled questions whose day already passed are never served: rollover
closes and settles them on the way to today's question.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy import func, update

from dailydebate import db, socketio
from dailydebate.models import Question
from .clock import Calendar, get_calendar
from .influence import aggregate_daily_influence
from .settlement import settle_question_power


@dataclass
class RolloverResult:
    closed_question_id: Optional[int] = None
    majority: Optional[str] = None
    activated_question_id: Optional[int] = None
    skipped_question_ids: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return (
            self.closed_question_id is not None
            or self.activated_question_id is not None
            or bool(self.skipped_question_ids)
        )

    def to_dict(self):
        return {
            'closed_question_id': self.closed_question_id,
            'majority': self.majority,
            'activated_question_id': self.activated_question_id,
            'skipped_question_ids': list(self.skipped_question_ids),
        }


def get_active_question() -> Optional[Question]:
    return (
        Question.query.filter_by(status='active')
        .order_by(Question.published_date.desc(), Question.id.desc())
        .first()
    )


def get_next_due_question(today: date) -> Optional[Question]:
    return (
        Question.query.filter(Question.status == 'scheduled', Question.published_date <= today)
        .order_by(Question.published_date.asc(), Question.id.asc())
        .first()
    )


def _close_and_settle(question: Question, result: RolloverResult) -> bool:
    closed = db.session.execute(
        update(Question)
        .where(Question.id == question.id, Question.status == 'active')
        .values(status='closed')
    )
    if closed.rowcount == 0:
        return False
    settlement = settle_question_power(question.id)
    aggregate_daily_influence(question.id)
    result.closed_question_id = question.id
    result.majority = settlement.majority
    return True


def _skip_and_settle(question: Question, result: RolloverResult) -> bool:
    """Close a scheduled question whose day has passed without activating it."""
    skipped = db.session.execute(
        update(Question)
        .where(Question.id == question.id, Question.status == 'scheduled')
        .values(status='closed')
    )
    if skipped.rowcount == 0:
        return False
    settle_question_power(question.id)
    aggregate_daily_influence(question.id)
    result.skipped_question_ids.append(question.id)
    return True


def _activate(question: Question, result: RolloverResult) -> bool:
    activated = db.session.execute(
        update(Question)
        .where(Question.id == question.id, Question.status == 'scheduled')
        .values(status='active')
    )
    if activated.rowcount == 0:
        return False
    result.activated_question_id = question.id
    return True


def rollover(calendar: Optional[Calendar] = None) -> RolloverResult:
    """Close a stale active question, settle it and activate today's one.

    Safe to call any number of times a day: with a current active question
    it only confirms. Due questions from days already gone are closed and
    settled in date order, so after one call either a current question is
    active or nothing is due. Any failure rolls the whole step back and
    re-raises, leaving the next trigger to retry.
    """
    today = (calendar or get_calendar()).today()
    result = RolloverResult()
    try:
        active = get_active_question()
        if active is not None and active.published_date >= today:
            current_app.logger.info(f"[rollover] question={active.id} still current for {today}")
            return result

        if active is not None and not _close_and_settle(active, result):
            # a concurrent trigger already closed it
            active_id = active.id
            db.session.rollback()
            current_app.logger.info(f"[rollover] question={active_id} closed elsewhere, nothing to do")
            return result

        while True:
            nxt = get_next_due_question(today)
            if nxt is None:
                break
            if nxt.published_date < today:
                moved = _skip_and_settle(nxt, result)
            else:
                moved = _activate(nxt, result)
            if not moved:
                # a concurrent trigger is draining the same backlog
                nxt_id = nxt.id
                db.session.rollback()
                current_app.logger.info(f"[rollover] question={nxt_id} taken elsewhere, nothing to do")
                return RolloverResult()
            if result.activated_question_id is not None:
                break

        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception(f"[rollover] failed for {today}")
        raise

    current_app.logger.info(
        f"[rollover] today={today} closed={result.closed_question_id} "
        f"majority={result.majority} skipped={result.skipped_question_ids} "
        f"activated={result.activated_question_id}"
    )
    if result.changed:
        socketio.emit('question_update', result.to_dict(), namespace='/ws')
    return result


def get_or_activate_active(calendar: Optional[Calendar] = None) -> Optional[Question]:
    """Return the active question, rolling over first when it is missing or stale."""
    calendar = calendar or get_calendar()
    current = get_active_question()
    if current is not None and current.published_date >= calendar.today():
        return current
    rollover(calendar)
    return get_active_question()


def next_published_date(calendar: Optional[Calendar] = None) -> date:
    tomorrow = (calendar or get_calendar()).tomorrow()
    latest = db.session.query(func.max(Question.published_date)).scalar()
    if latest is None:
        return tomorrow
    return max(tomorrow, latest + timedelta(days=1))


def schedule_question(text: str, option_a: str, option_b: str, calendar: Optional[Calendar] = None) -> Question:
    try:
        question = Question(
            text=text,
            option_a=option_a,
            option_b=option_b,
            published_date=next_published_date(calendar),
            status='scheduled',
        )
        db.session.add(question)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[schedule] question={question.id} published_date={question.published_date}")
    return question
