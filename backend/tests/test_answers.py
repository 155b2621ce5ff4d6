from datetime import timedelta

import pytest

from conftest import TODAY, add_answer, add_question, add_user, stats_for
from dailydebate import db
from dailydebate.models import Answer, Participation
from dailydebate.services.debate import answers as svc
from dailydebate.services.debate.errors import ConflictError, NotFoundError
from dailydebate.services.debate.reconcile import reconcile


def test_percentages_round_half_up():
    assert svc.percentage(1, 3) == 33.33
    assert svc.percentage(2, 3) == 66.67
    assert svc.percentage(1, 8) == 12.5
    assert svc.percentage(0, 0) == 0.0
    # 1/6 = 16.666.. and 5/6 = 83.333..
    assert svc.percentage(1, 6) + svc.percentage(5, 6) == pytest.approx(100.0)


def test_identified_answer_records_participation_and_streak(app_ctx):
    q = add_question(TODAY, status='active')
    alice = add_user('alice')

    created = svc.create_answer(q.id, 'A', 'Cats rule', user_id=alice.id, ip_address='1.1.1.1')

    assert created.answer.id is not None
    assert created.streak.streak_days == 1
    assert Participation.query.filter_by(user_id=alice.id, question_id=q.id).count() == 1
    assert stats_for(alice.id).total_xp == pytest.approx(5.0)


def test_second_answer_by_same_user_conflicts(app_ctx):
    q = add_question(TODAY, status='active')
    alice = add_user('alice')
    svc.create_answer(q.id, 'A', 'First', user_id=alice.id)
    with pytest.raises(ConflictError, match='Already answered'):
        svc.create_answer(q.id, 'B', 'Second', user_id=alice.id)
    assert Answer.query.filter_by(question_id=q.id).count() == 1
    assert stats_for(alice.id).total_xp == pytest.approx(5.0)


def test_anonymous_answers_are_unique_per_ip(app_ctx):
    q = add_question(TODAY, status='active')
    created = svc.create_answer(q.id, 'B', 'Dogs', ip_address='2.2.2.2')
    assert created.streak is None
    with pytest.raises(ConflictError):
        svc.create_answer(q.id, 'A', 'Cats', ip_address='2.2.2.2')
    svc.create_answer(q.id, 'A', 'Cats', ip_address='3.3.3.3')


def test_answering_inactive_or_missing_question(app_ctx):
    scheduled = add_question(TODAY + timedelta(days=1))
    with pytest.raises(ConflictError, match='not active'):
        svc.create_answer(scheduled.id, 'A', 'Too early', ip_address='1.1.1.1')
    with pytest.raises(NotFoundError):
        svc.create_answer(9999, 'A', 'Nowhere', ip_address='1.1.1.1')


def test_like_and_unlike(app_ctx):
    q = add_question(TODAY, status='active')
    alice, bob = add_user('alice'), add_user('bob')
    answer = add_answer(q, 'A', alice)

    assert svc.like_answer(answer.id, bob.id).likes_count == 1
    with pytest.raises(ConflictError, match='Already liked'):
        svc.like_answer(answer.id, bob.id)
    assert svc.unlike_answer(answer.id, bob.id) is True
    assert svc.unlike_answer(answer.id, bob.id) is False
    db.session.expire_all()
    assert db.session.get(Answer, answer.id).likes_count == 0


def test_self_like_is_rejected(app_ctx):
    q = add_question(TODAY, status='active')
    alice = add_user('alice')
    answer = add_answer(q, 'A', alice)
    with pytest.raises(ConflictError, match='own answer'):
        svc.like_answer(answer.id, alice.id)


def test_likes_freeze_once_question_closes(app_ctx):
    q = add_question(TODAY - timedelta(days=1), status='closed')
    alice, bob = add_user('alice'), add_user('bob')
    answer = add_answer(q, 'A', alice, likes=3)
    with pytest.raises(ConflictError):
        svc.like_answer(answer.id, bob.id)
    with pytest.raises(NotFoundError):
        svc.like_answer(12345, bob.id)


def test_results_and_listing(app_ctx):
    q = add_question(TODAY, status='active')
    users = [add_user(n) for n in ('u1', 'u2', 'u3')]
    add_answer(q, 'A', users[0], likes=1)
    add_answer(q, 'B', users[1], likes=5)
    add_answer(q, 'B', users[2], likes=3)

    results = svc.question_results(q.id).to_dict()
    assert results['totals'] == {'A': 1, 'B': 2, 'total': 3}
    assert results['percentages'] == {'A': 33.33, 'B': 66.67}

    assert [a.likes_count for a in svc.top_answers(q.id, 'B')] == [5, 3]
    assert [a.likes_count for a in svc.list_answers(q.id, sort='likes_asc')] == [1, 3, 5]
    assert len(svc.list_answers(q.id, side='B', limit=1, offset=1)) == 1
    assert svc.my_answer(q.id, users[0].id).side == 'A'
    with pytest.raises(ValueError):
        svc.list_answers(q.id, sort='random')


def test_results_for_unanswered_question(app_ctx):
    q = add_question(TODAY, status='active')
    results = svc.question_results(q.id).to_dict()
    assert results['totals']['total'] == 0
    assert results['percentages'] == {'A': 0.0, 'B': 0.0}


def test_claimed_answer_still_blocks_its_ip(app_ctx):
    q = add_question(TODAY, status='active')
    user = add_user('user42')
    svc.create_answer(q.id, 'A', 'Cats', ip_address='1.2.3.4')
    assert reconcile(user.id, '1.2.3.4') == 1

    with pytest.raises(ConflictError, match='this network'):
        svc.create_answer(q.id, 'B', 'Dogs', ip_address='1.2.3.4')
    assert svc.question_results(q.id).totals == {'A': 1, 'B': 0}
