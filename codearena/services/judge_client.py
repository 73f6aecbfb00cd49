from __future__ import annotations

import logging
import time

import requests

from codearena.executor.common import JudgeRequestError

logger = logging.getLogger(__name__)


class JudgeClient:
    """JSON transport for the judging and problem-metadata API.

    Requests carry a timeout and are retried on network errors and 5xx
    responses with a linearly growing delay. Other non-2xx answers fail at once.
    """

    def __init__(self, base_url: str, timeout: float = 12.0, retries: int = 2,
                 retry_delay: float = 0.6, session: requests.Session = None):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.session = session or self._create_session()

    @classmethod
    def from_config(cls, config) -> JudgeClient:
        return cls(
            base_url=config.get('JUDGE_API_BASE', ''),
            timeout=config.get('JUDGE_TIMEOUT', 12.0),
            retries=config.get('JUDGE_RETRIES', 2),
            retry_delay=config.get('JUDGE_RETRY_DELAY', 0.6),
        )

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({'Content-Type': 'application/json'})
        return session

    def set_token(self, token: str | None):
        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'
        else:
            self.session.headers.pop('Authorization', None)

    def _request_with_retry(self, method, path, retries=None, **kwargs):
        url = f'{self.base_url}{path}'
        max_retries = self.retries if retries is None else retries
        attempt = 0
        while True:
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                if attempt < max_retries:
                    attempt += 1
                    logger.warning(
                        f"{method} {path} failed (attempt {attempt}/{max_retries + 1}): {e}"
                    )
                    time.sleep(self.retry_delay * attempt)
                    continue
                raise JudgeRequestError(str(e)) from e

            if 500 <= resp.status_code < 600 and attempt < max_retries:
                attempt += 1
                logger.warning(
                    f"{method} {path} returned {resp.status_code} "
                    f"(attempt {attempt}/{max_retries + 1})"
                )
                time.sleep(self.retry_delay * attempt)
                continue

            try:
                data = resp.json()
            except ValueError:
                data = {}
            if not resp.ok:
                message = data.get('message') if isinstance(data, dict) else None
                raise JudgeRequestError(
                    message or f'Request failed ({resp.status_code})',
                    status_code=resp.status_code,
                )
            return data

    def get(self, path, **kwargs):
        return self._request_with_retry('GET', path, **kwargs)

    def post(self, path, payload=None, **kwargs):
        return self._request_with_retry('POST', path, json=payload, **kwargs)

    # Judging endpoints

    def execute(self, payload: dict) -> dict:
        return self.post('/execute', payload)

    def submit(self, payload: dict) -> dict:
        # persisted; a retried POST could record the submission twice
        return self.post('/submissions', payload, retries=0)

    def list_submissions(self, contest_id: str) -> list:
        data = self.get('/submissions', params={'contestId': contest_id})
        if isinstance(data, dict):
            return data.get('data') or []
        return data if isinstance(data, list) else []

    # Problem metadata

    def get_problem(self, problem_id: str) -> dict:
        return self.get(f'/problems/{problem_id}')

    def get_problem_testcases(self, problem_id: str) -> list:
        data = self.get(f'/problems/{problem_id}/testcases')
        if isinstance(data, dict):
            return data.get('testCases') or []
        return []
