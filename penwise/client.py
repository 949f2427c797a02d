# penwise/client.py
import codecs
import json
import logging
from dataclasses import dataclass
from typing import Optional
import requests

logger = logging.getLogger(__name__)

GENERATE_PATH = '/functions/v1/generate-content'


@dataclass
class GenerationResult:
    text: str
    remaining_credits: Optional[int]
    complete: bool


class GenerationError(Exception):
    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class StreamConsumer:
    """Accumulates a reframed generation stream as it arrives.

    `complete` only becomes true when the server sent a `done` record; a
    stream that simply stops must be treated as possibly truncated.
    """

    def __init__(self, on_content=None):
        self.on_content = on_content
        self.fragments = []
        self.remaining_credits = None
        self.complete = False
        self.skipped = 0
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self._pending = ''

    @property
    def text(self):
        return ''.join(self.fragments)

    def feed(self, chunk):
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._pending += chunk
        *lines, self._pending = self._pending.split('\n')
        for line in lines:
            self._handle_line(line)

    def finish(self):
        self._pending += self._decoder.decode(b'', final=True)
        if self._pending:
            self._handle_line(self._pending)
            self._pending = ''
        return self.result()

    def result(self):
        return GenerationResult(self.text, self.remaining_credits, self.complete)

    def _handle_line(self, line):
        if not line.strip():
            return
        try:
            record = json.loads(line)
        except ValueError as e:
            self.skipped += 1
            logger.warning(f"Error parsing stream data: {e}")
            return
        if not isinstance(record, dict):
            self.skipped += 1
            return
        kind = record.get('type')
        if kind == 'metadata':
            self.remaining_credits = record.get('remainingCredits')
        elif kind == 'content':
            fragment = record.get('content') or ''
            self.fragments.append(fragment)
            if self.on_content:
                self.on_content(fragment)
        elif kind == 'done':
            self.complete = True


def consume(chunks, on_content=None):
    consumer = StreamConsumer(on_content=on_content)
    for chunk in chunks:
        consumer.feed(chunk)
    return consumer.finish()


class PenwiseClient:
    """Minimal HTTP client for the generation endpoint."""

    def __init__(self, base_url, token, session=None, timeout=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def generate(self, content_type, prompt, tone='', style='', user_details=None,
                 sample_mode=False, on_content=None):
        response = self.session.post(
            self.base_url + GENERATE_PATH,
            headers={'Authorization': f'Bearer {self.token}'},
            json={
                'contentType': content_type,
                'prompt': prompt,
                'tone': tone,
                'style': style,
                'userDetails': user_details or {},
                'sampleMode': sample_mode,
            },
            stream=True,
            timeout=self.timeout,
        )
        with response:
            if response.status_code != 200:
                try:
                    message = response.json().get('error', response.reason)
                except ValueError:
                    message = response.text or response.reason
                raise GenerationError(response.status_code, message)
            consumer = StreamConsumer(on_content=on_content)
            try:
                for chunk in response.iter_content(chunk_size=None):
                    consumer.feed(chunk)
            except requests.exceptions.RequestException as e:
                # keep what arrived; `complete` stays false
                logger.error(f"Generation stream interrupted: {e}")
            return consumer.finish()
