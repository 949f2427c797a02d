# penwise/reframe.py
"""
Re-framing of the upstream event stream.

The model endpoint answers with event-stream records (`data: <json>` lines
separated by blank lines, closed by `data: [DONE]`). Clients receive one JSON
object per line instead:

    {"type": "metadata", "remainingCredits": 4}
    {"type": "content", "content": "Hel"}
    {"type": "content", "content": "lo"}

Everything is done incrementally: nothing is buffered beyond the current
partial line.
"""
import codecs
import json
import logging
import requests
from .errors import MalformedStreamRecord

logger = logging.getLogger(__name__)

DONE_SENTINEL = '[DONE]'


def encode_record(record):
    return json.dumps(record, separators=(',', ':'), ensure_ascii=False) + '\n'


def _iter_lines(chunks):
    decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
    pending = ''
    for chunk in chunks:
        if isinstance(chunk, bytes):
            chunk = decoder.decode(chunk)
        pending += chunk
        *lines, pending = pending.split('\n')
        for line in lines:
            yield line.rstrip('\r')
    pending += decoder.decode(b'', final=True)
    if pending:
        yield pending.rstrip('\r')


def iter_event_payloads(chunks):
    """Yield the data payload of every event-stream record, in order."""
    data_lines = []
    for line in _iter_lines(chunks):
        if not line:
            if data_lines:
                yield '\n'.join(data_lines)
                data_lines = []
            continue
        if line.startswith(':'):
            continue
        name, _, value = line.partition(':')
        if name != 'data':
            continue
        if value.startswith(' '):
            value = value[1:]
        data_lines.append(value)
    if data_lines:
        yield '\n'.join(data_lines)


def extract_delta(payload):
    try:
        parsed = json.loads(payload)
    except ValueError as e:
        raise MalformedStreamRecord(f"Invalid JSON in stream record: {payload[:80]!r}") from e
    try:
        return parsed['choices'][0]['delta'].get('content')
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


def reframe(chunks, remaining_credits, emit_done=False):
    """Generate the outgoing line-delimited records for one generation."""
    yield encode_record({'type': 'metadata', 'remainingCredits': remaining_credits})

    finished = False
    try:
        for payload in iter_event_payloads(chunks):
            if payload == DONE_SENTINEL:
                finished = True
                break
            try:
                delta = extract_delta(payload)
            except MalformedStreamRecord as e:
                logger.warning(f"Error parsing SSE data: {e}")
                continue
            if delta:
                yield encode_record({'type': 'content', 'content': delta})
    except (requests.exceptions.RequestException, OSError) as e:
        logger.error(f"Streaming error: {e}")
        return

    if finished and emit_done:
        yield encode_record({'type': 'done'})
