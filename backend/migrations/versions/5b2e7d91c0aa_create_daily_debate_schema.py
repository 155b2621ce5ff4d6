"""create daily debate schema

Revision ID: 5b2e7d91c0aa
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b2e7d91c0aa'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('text', sa.String(length=500), nullable=False),
        sa.Column('option_a', sa.String(length=150), nullable=False),
        sa.Column('option_b', sa.String(length=150), nullable=False),
        sa.Column('published_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='scheduled'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_question_published_date', 'question', ['published_date'])
    op.create_index('ix_question_status', 'question', ['status'])

    op.create_table(
        'answer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('side', sa.String(length=1), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('question_id', 'user_id', name='uq_answer_question_user'),
    )
    op.create_index('ix_answer_question_id', 'answer', ['question_id'])
    op.create_index('ix_answer_user_id', 'answer', ['user_id'])
    op.create_index('ix_answer_ip_address', 'answer', ['ip_address'])
    op.create_index(
        'uq_answer_question_anon_ip', 'answer', ['question_id', 'ip_address'],
        unique=True,
        sqlite_where=sa.text('user_id IS NULL'),
        postgresql_where=sa.text('user_id IS NULL'),
    )

    op.create_table(
        'answer_like',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('answer_id', sa.Integer(), sa.ForeignKey('answer.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('answer_id', 'user_id', name='uq_answer_like_answer_user'),
    )
    op.create_index('ix_answer_like_answer_id', 'answer_like', ['answer_id'])
    op.create_index('ix_answer_like_user_id', 'answer_like', ['user_id'])

    op.create_table(
        'user_stats',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), primary_key=True),
        sa.Column('total_xp', sa.Float(), nullable=False, server_default='0'),
        sa.Column('influence_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('power_majority_hits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('power_participations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_participation_date', sa.Date(), nullable=True),
        sa.Column('weekly_grace_tokens', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'daily_user_influence',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('likes_sum', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rank_position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('question_id', 'user_id', name='uq_daily_influence_question_user'),
    )
    op.create_index('ix_daily_user_influence_question_id', 'daily_user_influence', ['question_id'])
    op.create_index('ix_daily_user_influence_user_id', 'daily_user_influence', ['user_id'])

    op.create_table(
        'participation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'question_id', name='uq_participation_user_question'),
    )
    op.create_index('ix_participation_user_id', 'participation', ['user_id'])
    op.create_index('ix_participation_question_id', 'participation', ['question_id'])


def downgrade():
    op.drop_table('participation')
    op.drop_table('daily_user_influence')
    op.drop_table('user_stats')
    op.drop_table('answer_like')
    op.drop_table('answer')
    op.drop_table('question')
    op.drop_table('user')
