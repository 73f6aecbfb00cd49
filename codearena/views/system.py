from flask import Blueprint, current_app, jsonify, request

from codearena.executor import get_all_languages
from codearena.tasks.scheduler import get_last_status, probe_executor

system_bp = Blueprint('system', __name__, url_prefix='/system')


@system_bp.route('/env')
def executor_env():
    """Executor toolchain report; ``?refresh=1`` forces a live probe."""
    report = None if request.args.get('refresh') else get_last_status()
    if report is None:
        report = probe_executor(current_app.execution_client)
    return jsonify(report)


@system_bp.route('/languages')
def languages():
    return jsonify([
        {
            'name': impl.name,
            'editorMode': impl.EDITOR_MODE,
            'template': impl.DEFAULT_TEMPLATE,
        }
        for impl in get_all_languages().values()
    ])
