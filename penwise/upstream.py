# penwise/upstream.py
import logging
import requests
from .errors import UpstreamFailure, UpstreamQuotaExhausted, UpstreamRateLimited

logger = logging.getLogger(__name__)


class UpstreamStream:
    """An accepted streaming response from the model endpoint."""

    def __init__(self, response):
        self.response = response

    def iter_chunks(self):
        # chunk_size=None hands bytes over as soon as the transport has them
        return self.response.iter_content(chunk_size=None)

    def close(self):
        self.response.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class UpstreamClient:
    def __init__(self, base_url, api_key, model, session=None, timeout=None):
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_payload(self, messages):
        return {
            'model': self.model,
            'messages': messages,
            'stream': True,
        }

    def open_stream(self, system_prompt, user_message):
        payload = self.build_payload([
            {'role': 'system', 'content': system_prompt},
            {'role': 'user', 'content': user_message},
        ])
        try:
            response = self.session.post(
                self.base_url,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json',
                },
                json=payload,
                stream=True,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"AI gateway request failed: {e}")
            raise UpstreamFailure() from e

        if response.ok:
            return UpstreamStream(response)

        try:
            if response.status_code == 429:
                raise UpstreamRateLimited()
            if response.status_code == 402:
                raise UpstreamQuotaExhausted()
            logger.error(f"AI gateway error: {response.status_code} {response.text}")
            raise UpstreamFailure()
        finally:
            response.close()
