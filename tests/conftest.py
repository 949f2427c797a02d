import pytest
from penwise import create_app, db
from penwise.credentials import issue_token
from penwise.models import Profile, User


class FakeStream:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def iter_chunks(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True


class FakeUpstream:
    """Stands in for UpstreamClient; records every call it receives."""

    def __init__(self):
        self.calls = []
        self.chunks = [
            b'data: {"choices":[{"delta":{"content":"Hello"}}]}\n\n',
            b'data: {"choices":[{"delta":{"content":" world"}}]}\n\n',
            b'data: [DONE]\n\n',
        ]
        self.error = None
        self.mid_stream_error = None
        self.on_open = None
        self.stream = None

    def open_stream(self, system_prompt, user_message):
        self.calls.append((system_prompt, user_message))
        if self.on_open:
            self.on_open()
        if self.error is not None:
            raise self.error
        self.stream = FakeStream(self.chunks, self.mid_stream_error)
        return self.stream


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'UPSTREAM_API_KEY': 'upstream-test-key',
    })
    app.extensions['penwise.upstream'] = FakeUpstream()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def upstream(app):
    return app.extensions['penwise.upstream']


@pytest.fixture
def make_user(app):
    def _make_user(email='writer@example.com', credits=5, password='secret-pass'):
        with app.app_context():
            user = User(email=email)
            user.set_password(password)
            user.profile = Profile(credits=credits, plan='free')
            db.session.add(user)
            db.session.commit()
            token = issue_token(user).token
            return user.id, token
    return _make_user


@pytest.fixture
def auth_headers(make_user):
    _, token = make_user()
    return {'Authorization': f'Bearer {token}'}


def credits_of(app, user_id):
    with app.app_context():
        return Profile.query.filter_by(user_id=user_id).one().credits
