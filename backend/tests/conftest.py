import os, sys, pytest
# Ensure backend directory is on path so 'shopauthz' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import shopauthz
from shopauthz import create_app, get_db
from shopauthz.models.authz import Base, Shop, User
from shopauthz.services.authorizer import Authorizer


class FakeAuthorizer(Authorizer):
    """Authorizer double answering fixed values and recording every call."""

    def __init__(self, administer=True, invite=True):
        self.administer = administer
        self.invite = invite
        self.calls = []

    def can_administer(self, shop_id, actor):
        self.calls.append(('administer', shop_id, actor))
        return self.administer

    def can_invite(self, group, actor):
        self.calls.append(('invite', group.id, actor))
        return self.invite


class InterleavingAuthorizer(FakeAuthorizer):
    """Allows everything and runs ``action`` once, from inside the first invite check.

    The membership services consult ``can_invite`` after their unlocked read and
    before the locked write, so ``action`` lands exactly in that window.
    """

    def __init__(self, action):
        super().__init__()
        self.action = action

    def can_invite(self, group, actor):
        action, self.action = self.action, None
        if action is not None:
            action()
        return super().can_invite(group, actor)


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-that-is-long-enough-for-hs256',
        'TESTING': True,
    })
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def clean_db(app_instance):
    # Fresh schema and a fresh scoped session per test
    shopauthz.SessionLocal.remove()
    engine = shopauthz.db_engine
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    shopauthz.SessionLocal.remove()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session():
    return get_db()


@pytest.fixture()
def allow():
    return FakeAuthorizer()


@pytest.fixture()
def deny():
    return FakeAuthorizer(administer=False, invite=False)


@pytest.fixture()
def shop(session):
    """A bare shop: no groups and no default group yet."""
    s = Shop(name='Test Shop', slug='test-shop')
    session.add(s)
    session.commit()
    return s


@pytest.fixture()
def user(session):
    u = User(name='Member', email='member@test.local', password_hash='')
    u.set_password('pw')
    session.add(u)
    session.commit()
    return u


@pytest.fixture()
def other_session(app_instance):
    """Independent session on the same database, standing in for a second worker."""
    s = shopauthz.SessionLocal.session_factory()
    yield s
    s.close()
