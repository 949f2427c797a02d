import json
import requests
from penwise import db
from penwise.client import consume
from penwise.errors import UpstreamFailure, UpstreamQuotaExhausted, UpstreamRateLimited
from penwise.ledger import CreditLedger
from penwise.models import Profile
from conftest import credits_of

URL = '/functions/v1/generate-content'

BODY = {
    'contentType': 'blog',
    'prompt': 'Write about AI',
    'tone': 'friendly',
    'style': 'concise',
    'userDetails': {'topic': 'AI'},
}


def records(response):
    return [json.loads(line) for line in response.get_data(as_text=True).splitlines() if line]


def test_missing_authorization_is_rejected_before_any_work(client, upstream, monkeypatch):
    reads = []
    monkeypatch.setattr(CreditLedger, 'check_balance', lambda self, user_id: reads.append(user_id))

    response = client.post(URL, json=BODY)

    assert response.status_code == 401
    assert response.get_json() == {'error': 'Missing Authorization header'}
    assert upstream.calls == []
    assert reads == []


def test_malformed_authorization_header(client, upstream):
    response = client.post(URL, json=BODY, headers={'Authorization': 'Token abc'})
    assert response.status_code == 401
    assert upstream.calls == []


def test_unknown_token(client, upstream):
    response = client.post(URL, json=BODY, headers={'Authorization': 'Bearer nope'})
    assert response.status_code == 401
    assert response.get_json() == {'error': 'User not authenticated'}
    assert upstream.calls == []


def test_successful_generation_streams_metadata_then_content(app, client, upstream, make_user):
    user_id, token = make_user(credits=1)

    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert response.headers['Content-Type'].startswith('text/event-stream')
    assert response.headers['Cache-Control'] == 'no-cache'
    assert response.headers['Access-Control-Allow-Origin'] == '*'
    assert records(response) == [
        {'type': 'metadata', 'remainingCredits': 0},
        {'type': 'content', 'content': 'Hello'},
        {'type': 'content', 'content': ' world'},
    ]
    assert credits_of(app, user_id) == 0
    assert upstream.stream.closed


def test_prompt_reaches_upstream(client, upstream, auth_headers):
    client.post(URL, json=BODY, headers=auth_headers).get_data()

    system_prompt, user_message = upstream.calls[0]
    assert 'Create SEO-optimized blog posts' in system_prompt
    assert system_prompt.endswith('Use a friendly tone.')
    assert user_message.startswith('Write about AI\n\nUser Details:\n')
    assert 'topic: AI\n' in user_message


def test_single_record_then_done(client, upstream, auth_headers):
    upstream.chunks = [
        b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n\n',
        b'data: [DONE]\n\n',
    ]
    response = client.post(URL, json=BODY, headers=auth_headers)

    assert response.get_data(as_text=True) == (
        '{"type":"metadata","remainingCredits":4}\n'
        '{"type":"content","content":"Hi"}\n'
    )


def test_done_record_when_enabled(app, client, upstream, auth_headers):
    app.config['STREAM_DONE_RECORD'] = True
    response = client.post(URL, json=BODY, headers=auth_headers)
    assert records(response)[-1] == {'type': 'done'}
    assert consume([response.get_data()]).complete


def test_zero_credits_is_payment_required(app, client, upstream, make_user):
    user_id, token = make_user(credits=0)

    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 402
    assert response.get_json() == {'error': 'Insufficient credits'}
    assert upstream.calls == []
    assert credits_of(app, user_id) == 0


def test_missing_profile_is_server_error(app, client, upstream, make_user):
    user_id, token = make_user()
    with app.app_context():
        db.session.delete(Profile.query.filter_by(user_id=user_id).one())
        db.session.commit()

    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to fetch user profile'}
    assert upstream.calls == []


def test_blank_prompt_is_bad_request(client, upstream, auth_headers):
    response = client.post(URL, json=dict(BODY, prompt='   '), headers=auth_headers)
    assert response.status_code == 400
    assert upstream.calls == []


def test_non_json_body_is_bad_request(client, auth_headers):
    response = client.post(URL, data='not json', headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Invalid request body'}


def test_upstream_errors_map_to_statuses_without_charging(app, client, upstream, make_user):
    user_id, token = make_user(credits=3)
    headers = {'Authorization': f'Bearer {token}'}
    cases = [
        (UpstreamRateLimited(), 429, 'AI service rate limit exceeded. Please try again in a moment.'),
        (UpstreamQuotaExhausted(), 402, 'AI service credits depleted. Please contact support.'),
        (UpstreamFailure(), 500, 'AI generation failed'),
    ]
    for error, status, message in cases:
        upstream.error = error
        response = client.post(URL, json=BODY, headers=headers)
        assert response.status_code == status
        assert response.get_json() == {'error': message}

    assert credits_of(app, user_id) == 3


def test_unexpected_exception_is_500(client, upstream, auth_headers):
    upstream.error = RuntimeError('boom')
    response = client.post(URL, json=BODY, headers=auth_headers)
    assert response.status_code == 500
    assert response.get_json() == {'error': 'An unknown error occurred'}


def test_credit_push_failure_still_streams(app, client, upstream, make_user, monkeypatch):
    user_id, token = make_user(credits=2)

    def queue_down(user_id, credits):
        raise ConnectionError('message queue unavailable')

    monkeypatch.setattr('penwise.ledger.publish_credits', queue_down)
    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert records(response)[0] == {'type': 'metadata', 'remainingCredits': 1}
    assert credits_of(app, user_id) == 1
    assert upstream.stream.closed


def test_upstream_closed_when_charging_fails(client, upstream, auth_headers, monkeypatch):
    def broken(self, user_id, current_balance):
        raise RuntimeError('ledger offline')

    monkeypatch.setattr(CreditLedger, 'decrement', broken)
    response = client.post(URL, json=BODY, headers=auth_headers)

    assert response.status_code == 500
    assert upstream.stream.closed


def test_lost_race_for_last_credit_is_payment_required(app, client, upstream, make_user):
    user_id, token = make_user(credits=1)

    def spend_elsewhere():
        Profile.query.filter_by(user_id=user_id).update({'credits': 0})
        db.session.commit()

    upstream.on_open = spend_elsewhere
    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 402
    assert upstream.stream.closed
    assert credits_of(app, user_id) == 0


def test_mid_stream_failure_truncates_silently(app, client, upstream, make_user):
    user_id, token = make_user(credits=2)
    upstream.chunks = [b'data: {"choices":[{"delta":{"content":"Par"}}]}\n\n']
    upstream.mid_stream_error = requests.exceptions.ChunkedEncodingError('connection reset')

    response = client.post(URL, json=BODY, headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert records(response) == [
        {'type': 'metadata', 'remainingCredits': 1},
        {'type': 'content', 'content': 'Par'},
    ]
    assert upstream.stream.closed
    assert credits_of(app, user_id) == 1


def test_reconstruction_from_captured_stream(client, upstream, auth_headers):
    pieces = ['The ', 'quick ', 'brown ', 'fox', ' jumps.']
    upstream.chunks = [
        ('data: ' + json.dumps({'choices': [{'delta': {'content': p}}]}) + '\n\n').encode()
        for p in pieces
    ] + [b'data: [DONE]\n\n']

    response = client.post(URL, json=BODY, headers=auth_headers)
    result = consume([response.get_data()])

    assert result.text == ''.join(pieces)
    assert result.remaining_credits == 4
    assert not result.complete


def test_preflight(client, upstream):
    response = client.open(URL, method='OPTIONS', headers={
        'Origin': 'https://app.test',
        'Access-Control-Request-Method': 'POST',
        'Access-Control-Request-Headers': 'authorization, content-type',
    })
    assert response.status_code == 200
    assert response.get_data() == b''
    assert response.headers['Access-Control-Allow-Origin'] == '*'
    assert 'authorization' in response.headers['Access-Control-Allow-Headers']
    assert 'content-type' in response.headers['Access-Control-Allow-Headers']
    assert 'POST' in response.headers['Access-Control-Allow-Methods']
    assert upstream.calls == []


def test_error_responses_carry_cors_headers(client):
    response = client.post(URL, json=BODY, headers={'Origin': 'https://app.test'})
    assert response.status_code == 401
    assert response.headers['Access-Control-Allow-Origin'] == '*'
