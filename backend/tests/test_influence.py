from conftest import TODAY, add_answer, add_question, add_user, stats_for

from dailydebate import db
from dailydebate.models import DailyUserInfluence
from dailydebate.services.debate.influence import aggregate_daily_influence, competition_ranks, influence_board


def test_ties_share_rank_and_next_rank_skips():
    ranked = competition_ranks([(1, 10), (2, 10), (3, 7), (4, 5)])
    assert [r.rank_position for r in ranked] == [1, 1, 3, 4]


def test_three_way_tie_after_leader():
    ranked = competition_ranks([(1, 9), (2, 3), (3, 3), (4, 3), (5, 0)])
    assert [r.rank_position for r in ranked] == [1, 2, 2, 2, 5]


def test_aggregate_ranks_users_and_skips_anonymous(app_ctx):
    q = add_question(TODAY, status='active')
    users = [add_user(n) for n in ('u1', 'u2', 'u3', 'u4')]
    # inserted out of order; user id breaks the tie between u1 and u2
    add_answer(q, 'B', users[3], likes=5)
    add_answer(q, 'A', users[1], likes=10)
    add_answer(q, 'A', users[0], likes=10)
    add_answer(q, 'B', users[2], likes=7)
    add_answer(q, 'A', ip_address='1.1.1.1', likes=50)

    ranked = aggregate_daily_influence(q.id)
    db.session.commit()

    assert [(r.user_id, r.likes_sum, r.rank_position) for r in ranked] == [
        (users[0].id, 10, 1),
        (users[1].id, 10, 1),
        (users[2].id, 7, 3),
        (users[3].id, 5, 4),
    ]
    board = influence_board(q.id)
    assert [row.rank_position for row in board] == [1, 1, 3, 4]
    assert stats_for(users[0].id).influence_total == 10
    assert stats_for(users[3].id).influence_total == 5


def test_rerun_replaces_rows_without_double_counting(app_ctx):
    q = add_question(TODAY, status='active')
    alice = add_user('alice')
    answer = add_answer(q, 'A', alice, likes=4)

    aggregate_daily_influence(q.id)
    db.session.commit()
    answer.likes_count = 6
    db.session.commit()
    aggregate_daily_influence(q.id)
    db.session.commit()

    rows = DailyUserInfluence.query.filter_by(question_id=q.id).all()
    assert len(rows) == 1
    assert rows[0].likes_sum == 6
    assert stats_for(alice.id).influence_total == 6


def test_influence_accumulates_across_questions(app_ctx):
    alice = add_user('alice')
    q1 = add_question(TODAY, status='active')
    add_answer(q1, 'A', alice, likes=3)
    q2 = add_question(TODAY, status='active', text='Tea or coffee?')
    add_answer(q2, 'B', alice, likes=2)

    aggregate_daily_influence(q1.id)
    aggregate_daily_influence(q2.id)
    db.session.commit()

    assert stats_for(alice.id).influence_total == 5
