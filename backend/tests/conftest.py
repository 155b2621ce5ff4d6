import os
import sys
from datetime import date

import pytest

# Ensure the backend root (containing the `dailydebate` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from dailydebate import create_app, db, socketio
from dailydebate.models import Answer, Question, User, UserStats
from dailydebate.services.debate.clock import FixedCalendar


# A Thursday; Monday of the same ISO week is 2026-10-12
TODAY = date(2026, 10, 15)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    TRUST_PROXY_HEADERS = False


@pytest.fixture()
def calendar():
    return FixedCalendar('Europe/Madrid', TODAY)


@pytest.fixture()
def flask_app(calendar):
    application = create_app(TestConfig, calendar=calendar)
    with application.app_context():
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    """Pushed app context for calling services directly."""
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


# ---- data helpers ----

def add_user(username, password='password', is_admin=False):
    user = User(username=username, is_admin=is_admin)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def add_question(published_date, status='scheduled', text='Cats or dogs?'):
    question = Question(
        text=text, option_a='Cats', option_b='Dogs',
        published_date=published_date, status=status,
    )
    db.session.add(question)
    db.session.commit()
    return question


def add_answer(question, side, user=None, likes=0, ip_address=None, body='Because.'):
    answer = Answer(
        question_id=question.id,
        user_id=user.id if user else None,
        ip_address=ip_address,
        side=side,
        body=body,
        likes_count=likes,
    )
    db.session.add(answer)
    db.session.commit()
    return answer


def stats_for(user_id):
    db.session.expire_all()
    return db.session.get(UserStats, user_id)


def login(flask_app, username, password='password', ip='127.0.0.1'):
    """A fresh test client logged in as the given user."""
    c = flask_app.test_client()
    res = c.post('/login', json={'username': username, 'password': password},
                 environ_base={'REMOTE_ADDR': ip})
    assert res.status_code == 200, res.get_json()
    return c
