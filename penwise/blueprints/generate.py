# penwise/blueprints/generate.py
import logging
from flask import Blueprint, Response, current_app, stream_with_context
from penwise.credentials import require_token
from penwise.errors import InsufficientCredits
from penwise.prompts import compose
from penwise.reframe import reframe
from penwise.schemas import GenerationRequest, parse_body

logger = logging.getLogger(__name__)

generate_bp = Blueprint('generate', __name__)

STREAM_HEADERS = {
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
}


@generate_bp.route('/generate-content', methods=['POST'])
@require_token
def generate_content(user):
    ledger = current_app.extensions['penwise.ledger']
    upstream = current_app.extensions['penwise.upstream']

    body = parse_body(GenerationRequest)
    balance = ledger.require_credit(user.id)
    composed = compose(body.contentType, body.prompt, body.tone, body.sampleMode, body.userDetails)

    stream = upstream.open_stream(composed.system, composed.user)
    try:
        remaining = ledger.decrement(user.id, balance)
    except InsufficientCredits:
        logger.warning(f"User {user.id} spent their last credit in a concurrent generation")
        stream.close()
        raise
    except Exception:
        stream.close()
        raise

    logger.info(f"Streaming {body.contentType} generation for user {user.id}, {remaining} credits left")
    emit_done = current_app.config['STREAM_DONE_RECORD']

    def relay():
        # closing the generator (client gone) releases the upstream connection
        try:
            yield from reframe(stream.iter_chunks(), remaining, emit_done=emit_done)
        finally:
            stream.close()

    return Response(
        stream_with_context(relay()),
        mimetype='text/event-stream',
        headers=STREAM_HEADERS,
    )
