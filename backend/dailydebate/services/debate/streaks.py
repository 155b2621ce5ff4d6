"""Streak and XP accrual for identified users.

Chosen policy: a missed day is covered by a weekly grace token when one is
left; otherwise the streak is halved (never below 1) and the answer earns
the smaller comeback base. XP is a base award plus a capped bonus that grows
with the streak. A second answer on a day already credited changes nothing
but the configured same-day award.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from flask import current_app
from sqlalchemy import update

from dailydebate import db
from dailydebate.models import UserStats
from .clock import Calendar, get_calendar
from .stats import ensure_user_stats, get_user_stats


# Event kinds
SAME_DAY = 'same_day'
FIRST = 'first'
CONTINUED = 'continued'
GRACE = 'grace'
COMEBACK = 'comeback'


@dataclass(frozen=True)
class StreakOutcome:
    event: str
    streak_days: int
    weekly_grace_tokens: int
    xp_awarded: float


def xp_for(event: str, streak_days: int, config) -> float:
    if event == SAME_DAY:
        return float(config.get('XP_SAME_DAY', 0.0))
    base = config.get('XP_COMEBACK_BASE', 3.0) if event == COMEBACK else config.get('XP_BASE', 5.0)
    bonus = min(
        float(config.get('XP_STREAK_BONUS_CAP', 3.5)),
        float(config.get('XP_STREAK_BONUS_PER_DAY', 0.5)) * max(0, streak_days - 1),
    )
    return float(base) + bonus


def compute_streak(
    last: Optional[date],
    streak_days: int,
    grace_tokens: int,
    today: date,
    config,
) -> StreakOutcome:
    """Pure transition from the stored streak state to today's state."""
    weekly_budget = int(config.get('WEEKLY_GRACE_TOKENS', 1))
    grace = min(grace_tokens, weekly_budget)
    if last is None or (last < today and not Calendar.same_week(last, today)):
        grace = weekly_budget

    if last is not None and last >= today:
        return StreakOutcome(SAME_DAY, streak_days, grace_tokens, xp_for(SAME_DAY, streak_days, config))

    if last is None:
        event, streak = FIRST, 1
    else:
        gap = Calendar.days_between(last, today)
        if gap == 1:
            event, streak = CONTINUED, streak_days + 1
        elif grace > 0:
            event, streak = GRACE, streak_days + 1
            grace -= 1
        else:
            event, streak = COMEBACK, max(1, streak_days // 2)
    return StreakOutcome(event, streak, grace, xp_for(event, streak, config))


def apply_streak_on_answer(user_id: int, calendar: Optional[Calendar] = None) -> StreakOutcome:
    """Update streak, grace tokens and XP after the user's answer was stored.

    Runs inside the answer's transaction. The write is conditional on the
    last participation date that was read, so two answers racing on the
    same day credit the streak once.
    """
    config = current_app.config
    today = (calendar or get_calendar()).today()

    ensure_user_stats(user_id)
    stats = get_user_stats(user_id)
    db.session.refresh(stats)
    last = stats.last_participation_date

    outcome = compute_streak(last, int(stats.streak_days or 0), int(stats.weekly_grace_tokens), today, config)

    if outcome.event == SAME_DAY:
        _add_xp(user_id, outcome.xp_awarded)
        return outcome

    guard = UserStats.last_participation_date.is_(None) if last is None else UserStats.last_participation_date == last
    result = db.session.execute(
        update(UserStats)
        .where(UserStats.user_id == user_id, guard)
        .values(
            streak_days=outcome.streak_days,
            weekly_grace_tokens=outcome.weekly_grace_tokens,
            last_participation_date=today,
            total_xp=UserStats.total_xp + outcome.xp_awarded,
        )
    )
    if result.rowcount == 0:
        # another request credited this user first
        db.session.refresh(stats)
        same_day = StreakOutcome(
            SAME_DAY, stats.streak_days, stats.weekly_grace_tokens, xp_for(SAME_DAY, stats.streak_days, config)
        )
        _add_xp(user_id, same_day.xp_awarded)
        current_app.logger.info(f"[streak] user={user_id} lost race, treated as same-day")
        return same_day

    current_app.logger.info(
        f"[streak] user={user_id} event={outcome.event} streak={outcome.streak_days} "
        f"grace={outcome.weekly_grace_tokens} xp=+{outcome.xp_awarded}"
    )
    return outcome


def _add_xp(user_id: int, amount: float) -> None:
    if not amount:
        return
    db.session.execute(
        update(UserStats).where(UserStats.user_id == user_id).values(total_xp=UserStats.total_xp + amount)
    )
