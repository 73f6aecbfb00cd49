from __future__ import annotations

import json
import logging

import requests

from .common import ExecutionError, ExecutionResult, SourceLanguage, _number
from . import get_language

logger = logging.getLogger(__name__)


def resolve_compiler_base(config) -> str:
    """Pick the sandbox origin for the current environment.

    An explicit ``COMPILER_API_BASE`` always wins. Production builds talk to
    their own origin (the same-origin ``/compile`` route of the deployment);
    everything else defaults to the local standalone compiler server.
    """
    explicit = (config.get('COMPILER_API_BASE') or '').strip()
    if explicit:
        return explicit.rstrip('/')
    if not config.get('DEBUG') and not config.get('TESTING'):
        return (config.get('PUBLIC_ORIGIN') or '').rstrip('/')
    return 'http://localhost:8000'


class ExecutionClient:
    """Issues single compile-and-run requests against the sandbox service.

    No retries are attempted here and no timeout is applied unless one is
    configured; a hung sandbox call blocks its caller.
    """

    def __init__(self, base_url: str, timeout: float | None = None,
                 env_check_url: str | None = None, session: requests.Session = None):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.env_check_url = env_check_url
        self.session = session or self._create_session()

    @classmethod
    def from_config(cls, config) -> ExecutionClient:
        judge_base = (config.get('JUDGE_API_BASE') or '').rstrip('/')
        return cls(
            base_url=resolve_compiler_base(config),
            timeout=config.get('COMPILER_TIMEOUT'),
            env_check_url=f'{judge_base}/env/check' if judge_base else None,
        )

    @property
    def compile_url(self) -> str:
        return f'{self.base_url}/compile'

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({'Content-Type': 'application/json'})
        return session

    def prepare(self, code: str, lang) -> str:
        """Apply the language's source rewrite (Java gets its Main wrapper)."""
        impl = get_language(lang)
        return impl.prepare_source(code or '') if impl else (code or '')

    def execute(self, code: str, input: str, lang) -> ExecutionResult:
        """Compile and run *code* with *input* on stdin.

        Raises:
            ExecutionError: the request failed, returned a non-2xx status or
                a body that is not JSON.
        """
        language = SourceLanguage.resolve(lang)
        payload = {
            'code': self.prepare(code, lang),
            'input': input or '',
            'lang': language.value if language else str(lang),
        }
        try:
            resp = self.session.post(self.compile_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.warning(f"Sandbox request to {self.compile_url} failed: {e}")
            raise ExecutionError(str(e)) from e
        except ValueError as e:
            logger.warning(f"Sandbox returned a non-JSON body: {e}")
            raise ExecutionError(f'Invalid sandbox response: {e}') from e
        return self.parse_response(data)

    @staticmethod
    def parse_response(data) -> ExecutionResult:
        """Build an ExecutionResult from a sandbox body, leniently.

        Anything other than an object with a string ``output`` is serialized
        back to JSON and shown as the output text.
        """
        if isinstance(data, dict) and isinstance(data.get('output'), str):
            output = data['output']
        else:
            output = json.dumps(data)
        if not isinstance(data, dict):
            return ExecutionResult(output=output)

        exit_code = _number(data.get('exitCode'))
        return ExecutionResult(
            output=output,
            stdout=data.get('stdout') if isinstance(data.get('stdout'), str) else None,
            stderr=data.get('stderr') if isinstance(data.get('stderr'), str) else None,
            exit_code=int(exit_code) if exit_code is not None else None,
            runtime_ms=_number(data.get('runtimeMs')),
            memory_kb=_number(data.get('memoryKb')),
        )

    def check_environment(self) -> dict:
        """Fetch the executor's toolchain report (python, javac, java, g++)."""
        if not self.env_check_url:
            return {'ok': False, 'error': 'Executor environment endpoint not configured'}
        try:
            resp = self.session.get(self.env_check_url, timeout=self.timeout or 10)
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Executor environment check failed: {e}")
            return {'ok': False, 'error': str(e) or 'Failed to check executor environment'}
        if not isinstance(data, dict):
            return {'ok': False, 'error': 'Unexpected environment report'}
        data.setdefault('ok', resp.ok)
        return data
