import os, sys, pytest
# Ensure backend directory is on path so 'repairtrack' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repairtrack import create_app, get_db
from repairtrack.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import repairtrack.models.repair_ticket  # noqa: F401
import repairtrack.models.kva  # noqa: F401
import repairtrack.models.history  # noqa: F401
import repairtrack.models.notification  # noqa: F401

TEST_CONFIG = {
    'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
    'PUBLIC_APP_URL': 'https://track.example.com/',
}


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app(TEST_CONFIG)
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def fresh_rate_limiter(app_instance):
    # every test starts with an empty window for the test client's address
    app_instance.extensions['tracking_rate_limiter'].reset()
    yield


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
