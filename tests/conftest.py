import os
import sys
import pytest

# Ensure the project root (containing the `egghunt` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import Config
from egghunt import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    STORE_READ_RETRIES = 3
    DEFAULT_CODES = ['CODE1', 'CODE2', 'CODE3']


ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'hunter2'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import egghunt.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def seeded(flask_app):
    """Catalog holding CODE1 and CODE2."""
    from egghunt.services.hunt import catalog
    return catalog.reseed(['CODE1', 'CODE2'])


@pytest.fixture()
def admin_account(flask_app):
    from egghunt.services.hunt import admin as admin_controls
    return admin_controls.create_admin(ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture()
def admin_client(flask_app, admin_account):
    test_client = flask_app.test_client()
    res = test_client.post('/admin/login', json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
    assert res.status_code == 200
    return test_client


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
