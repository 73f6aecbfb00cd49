"""Shared test fixtures for the CodeArena test suite."""

from unittest.mock import MagicMock

import pytest
import requests

from codearena import create_app
from codearena.executor.common import ExecutionResult
from codearena.extensions import db as _db


@pytest.fixture()
def app():
    """Create a Flask application configured for testing."""
    application = create_app('testing')
    yield application


@pytest.fixture()
def db(app):
    """Provide a clean database for each test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app, db):
    """Provide a Flask test client."""
    return app.test_client()


def _adding_sandbox(code, input, lang):
    """Pretend program: prints the sum of the integers on stdin."""
    total = sum(int(tok) for tok in (input or '').split())
    return ExecutionResult(output=f'{total}\n', stdout=f'{total}\n', stderr='', exit_code=0,
                           runtime_ms=3, memory_kb=512)


@pytest.fixture()
def adding_sandbox():
    """An ExecutionClient double whose program adds its stdin numbers."""
    sandbox = MagicMock()
    sandbox.base_url = 'http://sandbox.test'
    sandbox.execute.side_effect = _adding_sandbox
    return sandbox


@pytest.fixture()
def http_response():
    """Factory for fake ``requests`` responses."""
    def _make(json_data=None, status_code=200, json_error=None):
        resp = MagicMock()
        resp.status_code = status_code
        resp.ok = 200 <= status_code < 400
        if json_error is not None:
            resp.json.side_effect = json_error
        else:
            resp.json.return_value = json_data
        if resp.ok:
            resp.raise_for_status.return_value = None
        else:
            resp.raise_for_status.side_effect = requests.HTTPError(
                f'{status_code} Server Error'
            )
        return resp
    return _make
