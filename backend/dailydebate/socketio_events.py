from flask_socketio import join_room, leave_room, emit
from dailydebate import socketio


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_for(data):
    question_id = (data or {}).get('question_id')
    try:
        return f"question:{int(question_id)}"
    except (TypeError, ValueError):
        emit('error', {'message': 'question_id is required'})
        return None


def handle_join_question(data):
    room = _room_for(data)
    if room is None:
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_question(data):
    room = _room_for(data)
    if room is None:
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace.

    Clients join "question:<id>" to receive results_update events; every
    connected client receives question_update after a rollover.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_question', handle_join_question, namespace='/ws')
    socketio.on_event('leave_question', handle_leave_question, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')
