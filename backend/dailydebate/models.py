from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from dailydebate import db, bcrypt
from flask_login import UserMixin
from sqlalchemy import text


SIDES = ('A', 'B')
QUESTION_STATUSES = ('scheduled', 'active', 'closed')


def round_half_up(value, places=2) -> float:
    """Round like a spreadsheet would (0.125 -> 0.13), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'is_admin': self.is_admin,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.String(500), nullable=False)
    option_a = db.Column(db.String(150), nullable=False)
    option_b = db.Column(db.String(150), nullable=False)
    published_date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(16), default='scheduled', nullable=False, index=True) # scheduled, active, closed
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    answers = db.relationship('Answer', back_populates='question', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'option_a': self.option_a,
            'option_b': self.option_b,
            'published_date': self.published_date.isoformat(),
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Answer(db.Model):
    __tablename__ = 'answer'
    __table_args__ = (
        db.UniqueConstraint('question_id', 'user_id', name='uq_answer_question_user'),
        # One anonymous answer per IP and question; claimed answers leave the index
        db.Index(
            'uq_answer_question_anon_ip', 'question_id', 'ip_address',
            unique=True,
            sqlite_where=text('user_id IS NULL'),
            postgresql_where=text('user_id IS NULL'),
        ),
    )
    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, index=True)
    ip_address = db.Column(db.String(45), nullable=True, index=True)
    side = db.Column(db.String(1), nullable=False)
    body = db.Column(db.Text, nullable=False)
    likes_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    question = db.relationship('Question', back_populates='answers')
    author = db.relationship('User', foreign_keys=[user_id])

    def to_dict(self):
        return {
            'id': self.id,
            'question_id': self.question_id,
            'user_id': self.user_id,
            'side': self.side,
            'body': self.body,
            'likes_count': self.likes_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class AnswerLike(db.Model):
    __tablename__ = 'answer_like'
    __table_args__ = (
        db.UniqueConstraint('answer_id', 'user_id', name='uq_answer_like_answer_user'),
    )
    id = db.Column(db.Integer, primary_key=True)
    answer_id = db.Column(db.Integer, db.ForeignKey('answer.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class UserStats(db.Model):
    __tablename__ = 'user_stats'
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), primary_key=True)
    total_xp = db.Column(db.Float, default=0.0, nullable=False)
    influence_total = db.Column(db.Integer, default=0, nullable=False)
    power_majority_hits = db.Column(db.Integer, default=0, nullable=False)
    power_participations = db.Column(db.Integer, default=0, nullable=False)
    streak_days = db.Column(db.Integer, default=0, nullable=False)
    last_participation_date = db.Column(db.Date, nullable=True)
    weekly_grace_tokens = db.Column(db.Integer, default=1, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def power_pct(self) -> float:
        if not self.power_participations:
            return 0.0
        return round_half_up(self.power_majority_hits * 100 / self.power_participations)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'total_xp': self.total_xp,
            'influence_total': self.influence_total,
            'power_majority_hits': self.power_majority_hits,
            'power_participations': self.power_participations,
            'power_pct': self.power_pct,
            'streak_days': self.streak_days,
            'last_participation_date': self.last_participation_date.isoformat() if self.last_participation_date else None,
            'weekly_grace_tokens': self.weekly_grace_tokens,
        }


class DailyUserInfluence(db.Model):
    __tablename__ = 'daily_user_influence'
    __table_args__ = (
        db.UniqueConstraint('question_id', 'user_id', name='uq_daily_influence_question_user'),
    )
    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    likes_sum = db.Column(db.Integer, default=0, nullable=False)
    rank_position = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'question_id': self.question_id,
            'user_id': self.user_id,
            'likes_sum': self.likes_sum,
            'rank_position': self.rank_position,
        }


class Participation(db.Model):
    __tablename__ = 'participation'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'question_id', name='uq_participation_user_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
