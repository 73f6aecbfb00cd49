"""Contest blueprint: sample runs, graded submissions and history."""
from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from codearena.executor.common import OperationInProgress
from codearena.services.contest_service import ContestService, ContestSession
from codearena.services.registry import SessionRegistry

logger = logging.getLogger(__name__)

contest_bp = Blueprint('contest', __name__, url_prefix='/contest')

_sessions = SessionRegistry('contest session', busy=lambda session: session.busy)


def _get_session(contest_id):
    return _sessions.get_or_create(
        contest_id, lambda: ContestSession(contest_id),
        max_size=current_app.config.get('SESSION_REGISTRY_MAX'),
        idle_seconds=current_app.config.get('SESSION_IDLE_SECONDS'),
    )


def _service():
    return ContestService(current_app.judge_client)


def _respond(session, result=None):
    return jsonify({
        'success': result is not None,
        'session': session.to_dict(),
        'notices': [n.to_dict() for n in session.drain_notices()],
    })


def _apply_buffer(session, problem_id):
    if session.is_submitting(problem_id):
        raise OperationInProgress(f'A request for problem {problem_id} is already in flight')
    data = request.get_json(silent=True) or {}
    if 'code' in data:
        session.code = data['code'] or ''
    if data.get('language'):
        session.language = data['language']


@contest_bp.errorhandler(OperationInProgress)
def _busy(e):
    return jsonify({'success': False, 'message': str(e)}), 409


@contest_bp.route('/<contest_id>')
def get_session(contest_id):
    return jsonify(_get_session(contest_id).to_dict())


@contest_bp.route('/<contest_id>/problems/<problem_id>/select', methods=['POST'])
def select_problem(contest_id, problem_id):
    session = _get_session(contest_id)
    data = request.get_json(silent=True) or {}
    _service().select_problem(
        session, problem_id,
        problem_title=data.get('title', ''),
        language=data.get('language'),
    )
    return jsonify(session.to_dict())


@contest_bp.route('/<contest_id>/problems/<problem_id>/run', methods=['POST'])
def run(contest_id, problem_id):
    session = _get_session(contest_id)
    _apply_buffer(session, problem_id)
    result = _service().run(session, problem_id)
    return _respond(session, result)


@contest_bp.route('/<contest_id>/problems/<problem_id>/submit', methods=['POST'])
def submit(contest_id, problem_id):
    session = _get_session(contest_id)
    _apply_buffer(session, problem_id)
    result = _service().submit(session, problem_id)
    return _respond(session, result)


@contest_bp.route('/<contest_id>/submissions')
def submissions(contest_id):
    session = _get_session(contest_id)
    _service().refresh_submissions(session)
    return jsonify([s.to_dict() for s in session.submissions])


@contest_bp.route('/<contest_id>/submissions/<submission_id>/load', methods=['POST'])
def load_submission(contest_id, submission_id):
    session = _get_session(contest_id)
    submission = next((s for s in session.submissions if s.id == submission_id), None)
    if submission is None:
        return jsonify({'success': False, 'message': 'Submission not found'}), 404
    ContestService.load_submission(session, submission)
    return jsonify(session.to_dict())
