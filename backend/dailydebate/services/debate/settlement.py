from dataclasses import dataclass, field
from typing import Dict, List

from flask import current_app
from sqlalchemy import func, select, update

from dailydebate import db
from dailydebate.models import Answer, UserStats, SIDES
from .stats import ensure_user_stats


@dataclass(frozen=True)
class SideTally:
    side: str
    votes: int
    likes: int


@dataclass
class Settlement:
    question_id: int
    majority: str
    tallies: Dict[str, SideTally] = field(default_factory=dict)
    participants: int = 0


def tally_sides(question_id: int) -> Dict[str, SideTally]:
    """Answer count and likes sum per side; sides without answers are omitted."""
    rows = db.session.execute(
        select(Answer.side, func.count(Answer.id), func.coalesce(func.sum(Answer.likes_count), 0))
        .where(Answer.question_id == question_id)
        .group_by(Answer.side)
    ).all()
    return {side: SideTally(side=side, votes=int(votes), likes=int(likes)) for side, votes, likes in rows}


def resolve_majority(tallies: Dict[str, SideTally]) -> str:
    """Pick the winning side.

    More answers wins; a vote tie goes to the side with more likes; a full
    tie, or a question nobody answered, goes to A.
    """
    present: List[SideTally] = [tallies[s] for s in SIDES if s in tallies]
    if not present:
        return 'A'
    if len(present) == 1:
        return present[0].side
    a, b = present
    if a.votes != b.votes:
        return a.side if a.votes > b.votes else b.side
    if a.likes != b.likes:
        return a.side if a.likes > b.likes else b.side
    return 'A'


def settle_question_power(question_id: int) -> Settlement:
    """Credit power counters for everyone who answered the question.

    Must run inside the rollover transaction that closes the question; it
    does not commit.
    """
    tallies = tally_sides(question_id)
    majority = resolve_majority(tallies)

    participants = db.session.execute(
        select(Answer.user_id, Answer.side)
        .where(Answer.question_id == question_id, Answer.user_id.isnot(None))
        .distinct()
        .order_by(Answer.user_id)
    ).all()

    # Answers are unique per (question, user), so each user shows up once
    seen = set()
    for user_id, side in participants:
        if user_id in seen:
            continue
        seen.add(user_id)
        ensure_user_stats(user_id)
        values = {'power_participations': UserStats.power_participations + 1}
        if side == majority:
            values['power_majority_hits'] = UserStats.power_majority_hits + 1
        db.session.execute(
            update(UserStats).where(UserStats.user_id == user_id).values(**values)
        )

    votes = {s: t.votes for s, t in tallies.items()}
    current_app.logger.info(
        f"[settle] question={question_id} majority={majority} votes={votes} participants={len(seen)}"
    )
    return Settlement(question_id=question_id, majority=majority, tallies=tallies, participants=len(seen))
