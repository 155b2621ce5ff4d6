from conftest import TODAY, add_answer, add_question, add_user, stats_for

from dailydebate.services.debate.settlement import (
    SideTally, resolve_majority, settle_question_power, tally_sides,
)


def _tallies(**sides):
    return {side: SideTally(side, votes, likes) for side, (votes, likes) in sides.items()}


def test_vote_tie_is_broken_by_likes():
    assert resolve_majority(_tallies(A=(3, 10), B=(3, 7))) == 'A'
    assert resolve_majority(_tallies(A=(3, 7), B=(3, 10))) == 'B'


def test_more_votes_wins_regardless_of_likes():
    assert resolve_majority(_tallies(A=(2, 100), B=(5, 0))) == 'B'


def test_full_tie_and_empty_default_to_a():
    assert resolve_majority(_tallies(A=(4, 4), B=(4, 4))) == 'A'
    assert resolve_majority({}) == 'A'


def test_single_side_wins():
    assert resolve_majority(_tallies(B=(1, 0))) == 'B'


def test_settlement_credits_participants(app_ctx):
    q = add_question(TODAY, status='active')
    alice, bob, cara, dan = (add_user(n) for n in ('alice', 'bob', 'cara', 'dan'))
    add_answer(q, 'A', alice, likes=6)
    add_answer(q, 'A', bob, likes=4)
    add_answer(q, 'A', ip_address='9.9.9.9')
    add_answer(q, 'B', cara, likes=7)
    add_answer(q, 'B', dan)
    add_answer(q, 'B', ip_address='8.8.8.8')

    tallies = tally_sides(q.id)
    assert tallies['A'] == SideTally('A', 3, 10)
    assert tallies['B'] == SideTally('B', 3, 7)

    settlement = settle_question_power(q.id)
    assert settlement.majority == 'A'
    assert settlement.participants == 4

    for user, hits in ((alice, 1), (bob, 1), (cara, 0), (dan, 0)):
        stats = stats_for(user.id)
        assert stats.power_participations == 1
        assert stats.power_majority_hits == hits


def test_settlement_increments_existing_counters(app_ctx):
    q = add_question(TODAY, status='active')
    alice = add_user('alice')
    add_answer(q, 'B', alice)
    settle_question_power(q.id)

    q2 = add_question(TODAY, status='active', text='Tea or coffee?')
    add_answer(q2, 'A', alice)
    add_answer(q2, 'B', add_user('bob'))
    add_answer(q2, 'B', add_user('cara'))
    settle_question_power(q2.id)

    stats = stats_for(alice.id)
    assert stats.power_participations == 2
    assert stats.power_majority_hits == 1
    assert stats.power_pct == 50.0
