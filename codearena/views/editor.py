"""Editor blueprint: single runs, batch runs and test-case management."""
from __future__ import annotations

import json
import logging

from flask import Blueprint, Response, current_app, jsonify, request

from codearena.executor.common import OperationInProgress, TestcaseImportError, _text
from codearena.executor.normalize import CompareOptions
from codearena.services.batch_service import (
    BatchService, export_filename, export_testcases, import_testcases, parse_testcases,
)
from codearena.services.editor_store import SettingStore
from codearena.services.problem_service import ProblemLoader
from codearena.services.registry import SessionRegistry
from codearena.services.run_service import RunService
from codearena.services.workspace import EditorWorkspace

logger = logging.getLogger(__name__)

editor_bp = Blueprint('editor', __name__, url_prefix='/editor')

# Live workspaces keyed by id. Batch threads keep mutating the same
# instance that later polls read from.
_workspaces = SessionRegistry('workspace', busy=lambda ws: ws.slot.busy)


def _get_workspace(workspace_id):
    config = current_app.config

    def _create():
        return EditorWorkspace(
            workspace_id,
            store=SettingStore(workspace_id),
            options=CompareOptions(
                ignore_whitespace=config.get('IGNORE_WHITESPACE', True),
                ignore_case=config.get('IGNORE_CASE', False),
            ),
        )

    return _workspaces.get_or_create(
        workspace_id, _create,
        max_size=config.get('SESSION_REGISTRY_MAX'),
        idle_seconds=config.get('SESSION_IDLE_SECONDS'),
    )


def _batch_service():
    return BatchService(
        current_app.execution_client,
        case_delay=current_app.config.get('BATCH_CASE_DELAY', 0.3),
    )


@editor_bp.errorhandler(OperationInProgress)
def _busy(e):
    return jsonify({'success': False, 'message': str(e)}), 409


@editor_bp.errorhandler(TestcaseImportError)
def _bad_import(e):
    return jsonify({'success': False, 'message': str(e)}), 400


@editor_bp.route('/<workspace_id>')
def get_workspace(workspace_id):
    return jsonify(_get_workspace(workspace_id).to_dict())


@editor_bp.route('/<workspace_id>/draft', methods=['PUT'])
def update_draft(workspace_id):
    ws = _get_workspace(workspace_id)
    data = request.get_json(silent=True) or {}

    if 'language' in data:
        try:
            ws.set_language(data['language'])
        except ValueError as e:
            return jsonify({'success': False, 'message': str(e)}), 400
    if 'code' in data:
        ws.code = data['code']
    if 'input' in data:
        ws.input = data['input']
    if 'expected' in data:
        ws.expected = data['expected']
    if 'compareMode' in data:
        ws.options = CompareOptions.from_mode(data['compareMode'])
    if 'ignoreWhitespace' in data or 'ignoreCase' in data:
        ws.options = CompareOptions(
            ignore_whitespace=bool(data.get('ignoreWhitespace', ws.options.ignore_whitespace)),
            ignore_case=bool(data.get('ignoreCase', ws.options.ignore_case)),
        )
    return jsonify(ws.to_dict())


@editor_bp.route('/<workspace_id>/run', methods=['POST'])
def run(workspace_id):
    ws = _get_workspace(workspace_id)
    state = RunService(current_app.execution_client).run(ws)
    return jsonify(state.to_dict())


@editor_bp.route('/<workspace_id>/errors/next', methods=['POST'])
def next_error(workspace_id):
    ws = _get_workspace(workspace_id)
    ws.run_state.next_error()
    return jsonify(ws.run_state.to_dict())


@editor_bp.route('/<workspace_id>/run-all', methods=['POST'])
def run_all(workspace_id):
    ws = _get_workspace(workspace_id)
    thread = _batch_service().start(ws)
    if thread is None:
        return jsonify({'success': True, 'started': False, 'message': 'No test cases'})
    return jsonify({'success': True, 'started': True}), 202


@editor_bp.route('/<workspace_id>/testcases')
def list_testcases(workspace_id):
    ws = _get_workspace(workspace_id)
    with ws.lock:
        return jsonify({
            'batch': ws.batch.to_dict(),
            'testcases': [tc.to_dict() for tc in ws.testcases],
        })


@editor_bp.route('/<workspace_id>/testcases', methods=['PUT'])
def replace_testcases(workspace_id):
    ws = _get_workspace(workspace_id)
    cases = parse_testcases(request.get_json(silent=True))
    with ws.slot.hold('edit'):
        ws.replace_testcases(cases)
    return jsonify({'success': True, 'count': len(cases)})


@editor_bp.route('/<workspace_id>/testcases/add', methods=['POST'])
def add_testcase(workspace_id):
    ws = _get_workspace(workspace_id)
    data = request.get_json(silent=True) or {}
    with ws.slot.hold('edit'):
        ws.add_testcase(_text(data.get('input')), _text(data.get('expected')))
    return jsonify({'success': True, 'count': len(ws.testcases)})


@editor_bp.route('/<workspace_id>/testcases/<int:index>', methods=['DELETE'])
def remove_testcase(workspace_id, index):
    ws = _get_workspace(workspace_id)
    try:
        with ws.slot.hold('edit'):
            ws.remove_testcase(index)
    except IndexError as e:
        return jsonify({'success': False, 'message': str(e)}), 404
    return jsonify({'success': True, 'count': len(ws.testcases)})


@editor_bp.route('/<workspace_id>/testcases/reset', methods=['POST'])
def reset_testcases(workspace_id):
    ws = _get_workspace(workspace_id)
    with ws.slot.hold('edit'):
        ws.reset_testcases()
    return jsonify({'success': True, 'count': len(ws.testcases)})


@editor_bp.route('/<workspace_id>/testcases/export')
def export(workspace_id):
    ws = _get_workspace(workspace_id)
    body = json.dumps(export_testcases(ws), indent=2, ensure_ascii=False)
    return Response(
        body,
        mimetype='application/json',
        headers={
            'Content-Disposition': f'attachment; filename={export_filename(ws.problem_id)}'
        },
    )


@editor_bp.route('/<workspace_id>/testcases/import', methods=['POST'])
def import_(workspace_id):
    ws = _get_workspace(workspace_id)
    upload = request.files.get('file')
    raw = upload.read() if upload else request.get_data()
    with ws.slot.hold('import'):
        cases = import_testcases(ws, raw)
    return jsonify({'success': True, 'count': len(cases)})


@editor_bp.route('/<workspace_id>/problem/<problem_id>', methods=['POST'])
def load_problem(workspace_id, problem_id):
    ws = _get_workspace(workspace_id)
    with ws.slot.hold('problem load'):
        summary = ProblemLoader(current_app.judge_client).load(ws, problem_id)
    return jsonify({'success': True, **summary, 'workspace': ws.to_dict()})
