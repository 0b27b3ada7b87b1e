import os
import sys
import pytest
from flask import g

# Ensure the backend root (containing the `quizplatform` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizplatform import create_app, db, socketio

PASSWORD = 'password123'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    APP_DOMAIN = 'http://testserver'
    INVITE_TTL_SEC = 7 * 24 * 60 * 60
    PASSWORD_RESET_TTL_SEC = 60 * 60
    TIME_LIMIT_GRACE_SEC = 0
    MAIL_ENABLED = False
    RESEND_API_KEY = None
    FROM_EMAIL = 'Game Platform <test@example.com>'
    FEEDBACK_EMAIL = 'feedback@example.com'
    OPENROUTER_API_KEY = 'test-key'
    AI_MCQ_MODEL = 'test/model'
    AI_REQUEST_TIMEOUT_SEC = 5


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)

    # The app context below outlives each request, so drop the user
    # Flask-Login caches on `g` and let the next request reload its own.
    @application.teardown_request
    def _forget_login_user(exc):
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import quizplatform.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


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


@pytest.fixture()
def make_user(flask_app):
    from quizplatform.models import User

    def _make(email, role='student', name=None, password=PASSWORD):
        user = User(email=email, name=name or email.split('@')[0], role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def login_client(flask_app, make_user):
    """Create a user and return a test client logged in as them."""
    def _login(email, role='student', name=None):
        user = make_user(email, role=role, name=name)
        test_client = flask_app.test_client()
        res = test_client.post('/login', json={'email': email, 'password': PASSWORD})
        assert res.status_code == 200
        return test_client, user
    return _login


@pytest.fixture()
def teacher(login_client):
    return login_client('teacher@example.com', role='teacher', name='Tess')


@pytest.fixture()
def student(login_client):
    return login_client('student@example.com', role='student', name='Sam')
