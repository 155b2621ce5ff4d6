from functools import wraps
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dailydebate.services.debate.lifecycle import schedule_question


questions = Blueprint('questions', __name__)

# (field, min length, max length)
QUESTION_FIELDS = (
    ('text', 5, 500),
    ('option_a', 1, 150),
    ('option_b', 1, 150),
)


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'error': 'Admin role required'}), 403
        return view(*args, **kwargs)
    return wrapped


@questions.route('', methods=['POST'])
@admin_required
def create_question():
    data = request.get_json(silent=True) or {}
    errors = []
    for field, low, high in QUESTION_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not (low <= len(value.strip()) <= high):
            errors.append(f'{field} must be {low} to {high} characters')
    if errors:
        return jsonify({'error': errors}), 400

    question = schedule_question(data['text'].strip(), data['option_a'].strip(), data['option_b'].strip())
    return jsonify({
        'message': 'Question created',
        'id': question.id,
        'published_date': question.published_date.isoformat(),
    }), 201
