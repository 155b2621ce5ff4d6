from dataclasses import dataclass
from typing import Iterable, List, Tuple

from flask import current_app
from sqlalchemy import delete, func, select, update

from dailydebate import db
from dailydebate.models import Answer, DailyUserInfluence, UserStats
from .stats import ensure_user_stats


@dataclass(frozen=True)
class InfluenceRank:
    user_id: int
    likes_sum: int
    rank_position: int


def competition_ranks(rows: Iterable[Tuple[int, int]]) -> List[InfluenceRank]:
    """Rank (user_id, likes_sum) pairs already sorted by likes desc, user asc.

    Ties share a rank and the next distinct value takes its 1-based position:
    [10, 10, 7, 5] -> [1, 1, 3, 4].
    """
    ranked = []
    rank, last_likes, ties = 0, None, 0
    for user_id, likes_sum in rows:
        if likes_sum != last_likes:
            rank = rank + 1 + ties
            ties = 0
            last_likes = likes_sum
        else:
            ties += 1
        ranked.append(InfluenceRank(user_id=user_id, likes_sum=likes_sum, rank_position=rank))
    return ranked


def aggregate_daily_influence(question_id: int) -> List[InfluenceRank]:
    """Rebuild the influence board for a question and credit lifetime influence.

    Rows left by an earlier run are withdrawn from influence_total before
    being replaced, so running twice leaves the same totals as running once.
    Does not commit; the rollover transaction owns the boundary.
    """
    rows = db.session.execute(
        select(Answer.user_id, func.coalesce(func.sum(Answer.likes_count), 0).label('likes_sum'))
        .where(Answer.question_id == question_id, Answer.user_id.isnot(None))
        .group_by(Answer.user_id)
        .order_by(func.coalesce(func.sum(Answer.likes_count), 0).desc(), Answer.user_id.asc())
    ).all()
    ranked = competition_ranks((int(user_id), int(likes_sum)) for user_id, likes_sum in rows)

    previous = db.session.execute(
        select(DailyUserInfluence.user_id, DailyUserInfluence.likes_sum)
        .where(DailyUserInfluence.question_id == question_id)
    ).all()
    for user_id, likes_sum in previous:
        db.session.execute(
            update(UserStats)
            .where(UserStats.user_id == user_id)
            .values(influence_total=UserStats.influence_total - likes_sum)
        )
    if previous:
        current_app.logger.info(f"[influence] question={question_id} replacing {len(previous)} prior rows")
    db.session.execute(delete(DailyUserInfluence).where(DailyUserInfluence.question_id == question_id))

    for r in ranked:
        db.session.add(DailyUserInfluence(
            question_id=question_id,
            user_id=r.user_id,
            likes_sum=r.likes_sum,
            rank_position=r.rank_position,
        ))
        ensure_user_stats(r.user_id)
        db.session.execute(
            update(UserStats)
            .where(UserStats.user_id == r.user_id)
            .values(influence_total=UserStats.influence_total + r.likes_sum)
        )
    db.session.flush()

    current_app.logger.info(f"[influence] question={question_id} ranked={len(ranked)}")
    return ranked


def influence_board(question_id: int) -> List[DailyUserInfluence]:
    return (
        DailyUserInfluence.query
        .filter_by(question_id=question_id)
        .order_by(DailyUserInfluence.rank_position.asc(), DailyUserInfluence.user_id.asc())
        .all()
    )
