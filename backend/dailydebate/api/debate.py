from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from dailydebate.models import SIDES
from dailydebate.services.debate import answers as svc_answers
from dailydebate.services.debate.influence import influence_board
from dailydebate.services.debate.lifecycle import get_or_activate_active
from dailydebate.services.debate.reconcile import client_ip
from dailydebate.services.debate.stats import ensure_user_stats, get_user_stats
from dailydebate import db


debate = Blueprint('debate', __name__)


def _int_arg(name: str, default: int, minimum: int = 0) -> int:
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    return max(minimum, value)


@debate.route('/question/active', methods=['GET'])
def get_active_question():
    question = get_or_activate_active()
    if question is None:
        return jsonify({'error': 'No active question'}), 404
    return jsonify({'data': question.to_dict()})


@debate.route('/question/<int:question_id>/answer', methods=['POST'])
def answer_question(question_id):
    data = request.get_json(silent=True) or {}
    side = data.get('side')
    body = data.get('body')
    max_len = int(current_app.config.get('ANSWER_MAX_LENGTH', 280))
    if side not in SIDES:
        return jsonify({'error': 'side must be A or B'}), 400
    if not isinstance(body, str) or not body.strip() or len(body) > max_len:
        return jsonify({'error': f'body must be 1 to {max_len} characters'}), 400

    # A stale active question is rolled over before anyone can answer it
    get_or_activate_active()

    user_id = current_user.id if current_user.is_authenticated else None
    created = svc_answers.create_answer(
        question_id,
        side=side,
        body=body.strip(),
        user_id=user_id,
        ip_address=client_ip(request),
    )
    payload = {'message': 'Answer created', 'id': created.answer.id}
    if created.streak is not None:
        payload['streak'] = {
            'event': created.streak.event,
            'streak_days': created.streak.streak_days,
            'weekly_grace_tokens': created.streak.weekly_grace_tokens,
            'xp_awarded': created.streak.xp_awarded,
        }
    return jsonify(payload), 201


@debate.route('/answers/<int:answer_id>/like', methods=['POST'])
@login_required
def like_answer(answer_id):
    answer = svc_answers.like_answer(answer_id, current_user.id)
    return jsonify({'message': 'Liked', 'likes_count': answer.likes_count}), 201


@debate.route('/answers/<int:answer_id>/like', methods=['DELETE'])
@login_required
def unlike_answer(answer_id):
    removed = svc_answers.unlike_answer(answer_id, current_user.id)
    return jsonify({'message': 'Unliked' if removed else 'Not liked'})


@debate.route('/question/<int:question_id>/top', methods=['GET'])
def get_top_answers(question_id):
    svc_answers.get_question_or_404(question_id)
    side = request.args.get('side')
    limit = min(_int_arg('limit', 10, minimum=1), int(current_app.config.get('ANSWERS_PAGE_MAX', 50)))
    if side in SIDES:
        rows = svc_answers.top_answers(question_id, side, limit)
        return jsonify({'question_id': question_id, 'side': side, 'data': [a.to_dict() for a in rows]})
    return jsonify({
        'question_id': question_id,
        'topA': [a.to_dict() for a in svc_answers.top_answers(question_id, 'A', limit)],
        'topB': [a.to_dict() for a in svc_answers.top_answers(question_id, 'B', limit)],
    })


@debate.route('/question/<int:question_id>/answers', methods=['GET'])
def list_answers(question_id):
    svc_answers.get_question_or_404(question_id)
    side = request.args.get('side')
    if side is not None and side not in SIDES:
        return jsonify({'error': 'side must be A or B'}), 400
    sort = request.args.get('sort', 'new')
    if sort not in svc_answers.SORT_ORDERS:
        return jsonify({'error': f"sort must be one of {', '.join(svc_answers.SORT_ORDERS)}"}), 400
    limit = min(_int_arg('limit', 20, minimum=1), int(current_app.config.get('ANSWERS_PAGE_MAX', 50)))
    offset = _int_arg('offset', 0)
    rows = svc_answers.list_answers(question_id, side=side, sort=sort, limit=limit, offset=offset)
    return jsonify({'question_id': question_id, 'count': len(rows), 'data': [a.to_dict() for a in rows]})


@debate.route('/question/<int:question_id>/results', methods=['GET'])
def get_results(question_id):
    return jsonify(svc_answers.question_results(question_id).to_dict())


@debate.route('/question/<int:question_id>/influence', methods=['GET'])
def get_influence(question_id):
    svc_answers.get_question_or_404(question_id)
    rows = influence_board(question_id)
    return jsonify({'question_id': question_id, 'data': [r.to_dict() for r in rows]})


@debate.route('/question/<int:question_id>/my-answer', methods=['GET'])
@login_required
def get_my_answer(question_id):
    answer = svc_answers.my_answer(question_id, current_user.id)
    return jsonify({'answered': answer is not None, 'answer': answer.to_dict() if answer else None})


@debate.route('/me/stats', methods=['GET'])
@login_required
def get_my_stats():
    stats = get_user_stats(current_user.id)
    if stats is None:
        ensure_user_stats(current_user.id)
        db.session.commit()
        stats = get_user_stats(current_user.id)
    return jsonify({'user': current_user.to_dict(), 'stats': stats.to_dict()})
