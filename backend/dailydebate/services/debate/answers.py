from dataclasses import dataclass
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from dailydebate import db, socketio
from dailydebate.models import Answer, AnswerLike, Participation, Question, SIDES
from .errors import ConflictError, NotFoundError
from .streaks import StreakOutcome, apply_streak_on_answer


SORT_ORDERS = {
    'likes_desc': (Answer.likes_count.desc(), Answer.id.desc()),
    'likes_asc': (Answer.likes_count.asc(), Answer.id.asc()),
    'new': (Answer.created_at.desc(), Answer.id.desc()),
    'old': (Answer.created_at.asc(), Answer.id.asc()),
}


@dataclass
class CreatedAnswer:
    answer: Answer
    streak: Optional[StreakOutcome] = None


@dataclass(frozen=True)
class QuestionResults:
    question: Question
    totals: Dict[str, int]
    percentages: Dict[str, float]

    def to_dict(self):
        return {
            'question_id': self.question.id,
            'status': self.question.status,
            'question': {
                'text': self.question.text,
                'option_a': self.question.option_a,
                'option_b': self.question.option_b,
            },
            'totals': {**self.totals, 'total': sum(self.totals.values())},
            'percentages': self.percentages,
        }


def percentage(count: int, total: int) -> float:
    """count/total as a percentage with two decimals, halves rounded up."""
    if not total:
        return 0.0
    hundredths = (count * 10000 * 2 + total) // (2 * total)
    return hundredths / 100


def get_question_or_404(question_id: int) -> Question:
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFoundError('Question not found')
    return question


def get_answer_or_404(answer_id: int) -> Answer:
    answer = db.session.get(Answer, answer_id)
    if answer is None:
        raise NotFoundError('Answer not found')
    return answer


def create_answer(
    question_id: int,
    side: str,
    body: str,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> CreatedAnswer:
    """Store an answer; identified users also get participation and streak credit."""
    if side not in SIDES:
        raise ValueError('side must be A or B')
    question = get_question_or_404(question_id)
    if question.status != 'active':
        raise ConflictError('Question is not active')

    if user_id is not None:
        if Answer.query.filter_by(question_id=question_id, user_id=user_id).first():
            raise ConflictError('Already answered')
    elif ip_address and Answer.query.filter_by(question_id=question_id, ip_address=ip_address).first():
        # claimed answers keep their ip, so a claimed vote still counts for the network
        raise ConflictError('Already answered from this network')

    streak = None
    try:
        answer = Answer(
            question_id=question_id,
            user_id=user_id,
            ip_address=ip_address,
            side=side,
            body=body,
            likes_count=0,
        )
        db.session.add(answer)
        db.session.flush()
        if user_id is not None:
            if not Participation.query.filter_by(user_id=user_id, question_id=question_id).first():
                db.session.add(Participation(user_id=user_id, question_id=question_id))
                db.session.flush()
            streak = apply_streak_on_answer(user_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Already answered')
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"[answer] question={question_id} answer={answer.id} user={user_id} side={side}"
    )
    _broadcast_results(question_id)
    return CreatedAnswer(answer=answer, streak=streak)


def like_answer(answer_id: int, user_id: int) -> Answer:
    answer = get_answer_or_404(answer_id)
    if answer.user_id is not None and answer.user_id == user_id:
        raise ConflictError('You cannot like your own answer')
    if answer.question.status != 'active':
        raise ConflictError('Question is not active')
    if AnswerLike.query.filter_by(answer_id=answer_id, user_id=user_id).first():
        raise ConflictError('Already liked')
    try:
        db.session.add(AnswerLike(answer_id=answer_id, user_id=user_id))
        db.session.flush()
        db.session.execute(
            update(Answer).where(Answer.id == answer_id).values(likes_count=Answer.likes_count + 1)
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Already liked')
    except Exception:
        db.session.rollback()
        raise
    _broadcast_results(answer.question_id)
    return answer


def unlike_answer(answer_id: int, user_id: int) -> bool:
    """Remove the user's like if there is one; returns whether a like was removed."""
    answer = get_answer_or_404(answer_id)
    if answer.question.status != 'active':
        raise ConflictError('Question is not active')
    try:
        removed = db.session.execute(
            delete(AnswerLike).where(AnswerLike.answer_id == answer_id, AnswerLike.user_id == user_id)
        ).rowcount
        if removed:
            db.session.execute(
                update(Answer)
                .where(Answer.id == answer_id, Answer.likes_count > 0)
                .values(likes_count=Answer.likes_count - 1)
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    if removed:
        _broadcast_results(answer.question_id)
    return bool(removed)


def question_results(question_id: int) -> QuestionResults:
    question = get_question_or_404(question_id)
    counts = dict(db.session.execute(
        select(Answer.side, func.count(Answer.id))
        .where(Answer.question_id == question_id)
        .group_by(Answer.side)
    ).all())
    totals = {side: int(counts.get(side, 0)) for side in SIDES}
    total = sum(totals.values())
    percentages = {side: percentage(totals[side], total) for side in SIDES}
    return QuestionResults(question=question, totals=totals, percentages=percentages)


def top_answers(question_id: int, side: str, limit: int = 10) -> List[Answer]:
    return (
        Answer.query.filter_by(question_id=question_id, side=side)
        .order_by(Answer.likes_count.desc(), Answer.id.asc())
        .limit(limit)
        .all()
    )


def list_answers(
    question_id: int,
    side: Optional[str] = None,
    sort: str = 'new',
    limit: int = 20,
    offset: int = 0,
) -> List[Answer]:
    if sort not in SORT_ORDERS:
        raise ValueError(f'unknown sort: {sort}')
    query = Answer.query.filter_by(question_id=question_id)
    if side:
        query = query.filter_by(side=side)
    return query.order_by(*SORT_ORDERS[sort]).limit(limit).offset(offset).all()


def my_answer(question_id: int, user_id: int) -> Optional[Answer]:
    return Answer.query.filter_by(question_id=question_id, user_id=user_id).first()


def _broadcast_results(question_id: int) -> None:
    payload = question_results(question_id).to_dict()
    socketio.emit('results_update', payload, to=f"question:{question_id}", namespace='/ws')
