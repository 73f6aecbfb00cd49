"""Tests for the editor, contest and system blueprints."""

import io
import json
from unittest.mock import MagicMock, patch

import pytest

from codearena.executor.common import ExecutionResult, JudgeRequestError
from codearena.views import contest as contest_views
from codearena.views import editor as editor_views


@pytest.fixture(autouse=True)
def _clear_registries():
    editor_views._workspaces.clear()
    contest_views._sessions.clear()
    yield
    editor_views._workspaces.clear()
    contest_views._sessions.clear()


@pytest.fixture()
def sandbox(app, adding_sandbox):
    app.execution_client = adding_sandbox
    return adding_sandbox


@pytest.fixture()
def judge(app):
    judge = MagicMock()
    app.judge_client = judge
    return judge


class TestHealth:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'healthy'


class TestEditorViews:
    def test_get_workspace(self, client):
        data = client.get('/editor/w1').get_json()
        assert data['id'] == 'w1'
        assert data['language'] == 'Cpp'

    def test_update_draft_persists_input(self, client, db):
        resp = client.put('/editor/w1/draft', json={
            'language': 'python', 'code': 'print(1)', 'input': '4', 'expected': '1',
            'compareMode': 'strict',
        })
        data = resp.get_json()
        assert data['language'] == 'Python'
        assert data['code'] == 'print(1)'
        assert data['ignoreWhitespace'] is False

        # a fresh workspace object reads the stored fields back
        editor_views._workspaces.clear()
        data = client.get('/editor/w1').get_json()
        assert data['input'] == '4'
        assert data['expected'] == '1'

    def test_update_draft_unknown_language(self, client):
        resp = client.put('/editor/w1/draft', json={'language': 'cobol'})
        assert resp.status_code == 400

    def test_run(self, client, sandbox):
        client.put('/editor/w1/draft', json={'input': '2 3', 'expected': '5'})
        data = client.post('/editor/w1/run').get_json()
        assert data['output'] == '5\n'
        assert data['passed'] is True

    def test_run_rejected_while_busy(self, client, sandbox):
        client.get('/editor/w1')
        ws = editor_views._workspaces['w1']
        ws.slot.acquire('batch')
        try:
            resp = client.post('/editor/w1/run')
        finally:
            ws.slot.release()
        assert resp.status_code == 409
        assert resp.get_json()['success'] is False

    def test_run_all(self, client, sandbox):
        client.put('/editor/w1/testcases', json=[
            {'input': '2 3', 'expected': '5'}, {'input': '1 1', 'expected': '3'},
        ])
        with patch.object(editor_views.BatchService, 'start',
                          lambda self, ws, on_case=None: self.run_all(ws, on_case) or MagicMock()):
            resp = client.post('/editor/w1/run-all')
        assert resp.status_code == 202

        data = client.get('/editor/w1/testcases').get_json()
        assert [tc['passed'] for tc in data['testcases']] == [True, False]
        assert data['batch']['running'] is False

    def test_run_all_without_cases(self, client, sandbox):
        client.put('/editor/w1/testcases', json=[])
        resp = client.post('/editor/w1/run-all')
        assert resp.status_code == 200
        assert resp.get_json()['started'] is False

    def test_testcase_crud(self, client):
        client.post('/editor/w1/testcases/add', json={'input': '1', 'expected': '1'})
        data = client.get('/editor/w1/testcases').get_json()
        assert len(data['testcases']) == 2

        assert client.delete('/editor/w1/testcases/0').status_code == 200
        assert client.delete('/editor/w1/testcases/9').status_code == 404
        resp = client.post('/editor/w1/testcases/reset')
        assert resp.get_json()['count'] == 1

    def test_export(self, client):
        client.put('/editor/w1/testcases', json={'testcases': [{'input': '1', 'expected': '2'}]})
        resp = client.get('/editor/w1/testcases/export')
        assert resp.headers['Content-Disposition'] == 'attachment; filename=testcases.json'
        doc = json.loads(resp.data)
        assert doc['testcases'] == [{'input': '1', 'expected': '2'}]

    def test_import_upload(self, client):
        payload = b'{"testcases":[{"input":"1","expected":"2"}]}'
        resp = client.post(
            '/editor/w1/testcases/import',
            data={'file': (io.BytesIO(payload), 'cases.json')},
            content_type='multipart/form-data',
        )
        assert resp.get_json() == {'success': True, 'count': 1}

    def test_import_invalid(self, client):
        resp = client.post('/editor/w1/testcases/import', data='{"foo":"bar"}')
        assert resp.status_code == 400
        assert 'Invalid file format' in resp.get_json()['message']
        data = client.get('/editor/w1/testcases').get_json()
        assert len(data['testcases']) == 1

    def test_load_problem(self, client, judge):
        judge.get_problem_testcases.return_value = [{'input': '1', 'expectedOutput': '1'}]
        judge.get_problem.return_value = {'starterCode': {'cpp': '// go'}}
        data = client.post('/editor/w1/problem/p7').get_json()
        assert data['testcases'] == 1
        assert data['starterApplied'] == ['Cpp']
        assert data['workspace']['problemId'] == 'p7'

    def test_next_error(self, client, app):
        failing = MagicMock()
        failing.execute.return_value = ExecutionResult(
            output='main.cpp:2:1: error: a\nmain.cpp:6:1: error: b', exit_code=1,
        )
        app.execution_client = failing
        client.post('/editor/w1/run')
        data = client.post('/editor/w1/errors/next').get_json()
        assert data['errorLine'] == 6


class TestContestViews:
    def test_select_and_run(self, client, judge):
        judge.execute.return_value = {'status': 'accepted'}
        client.post('/contest/c1/problems/p1/select', json={'title': 'Sum', 'language': 'python'})
        resp = client.post('/contest/c1/problems/p1/run', json={'code': 'print(1)'})
        data = resp.get_json()
        assert data['success'] is True
        assert data['session']['result']['status'] == 'accepted'
        assert data['notices'] == [{'level': 'success', 'message': 'Code executed successfully!'}]

    def test_submit_failure(self, client, judge):
        judge.submit.side_effect = JudgeRequestError('down')
        resp = client.post('/contest/c1/problems/p1/submit', json={'code': 'x'})
        data = resp.get_json()
        assert data['success'] is False
        assert data['notices'][0]['message'] == 'Failed to submit solution'

    def test_submit_rejected_while_in_flight(self, client, judge):
        client.get('/contest/c1')
        session = contest_views._sessions['c1']
        session.slot_for('p1').acquire('submit')
        try:
            resp = client.post('/contest/c1/problems/p1/submit', json={'code': 'changed'})
        finally:
            session.slot_for('p1').release()
        assert resp.status_code == 409
        assert session.code == ''
        judge.submit.assert_not_called()

    def test_submissions_and_load(self, client, judge):
        judge.list_submissions.return_value = [
            {'_id': 's1', 'problemId': 'p1', 'code': 'old', 'language': 'java',
             'status': 'accepted', 'testCases': []},
        ]
        data = client.get('/contest/c1/submissions').get_json()
        assert [s['_id'] for s in data] == ['s1']

        data = client.post('/contest/c1/submissions/s1/load').get_json()
        assert data['code'] == 'old'
        assert data['language'] == 'java'
        assert data['result']['status'] == 'accepted'

        assert client.post('/contest/c1/submissions/nope/load').status_code == 404


class TestSystemViews:
    def test_languages(self, client):
        names = {lang['name'] for lang in client.get('/system/languages').get_json()}
        assert names == {'Java', 'Cpp', 'Python', 'JavaScript'}

    def test_env_probe(self, client, app):
        executor = MagicMock()
        executor.check_environment.return_value = {'ok': True, 'tools': {}}
        app.execution_client = executor
        data = client.get('/system/env?refresh=1').get_json()
        assert data['ok'] is True
        assert 'checkedAt' in data


class TestTestcaseEditsHoldSlot:
    @pytest.mark.parametrize('method,path,kwargs', [
        ('put', '/editor/w1/testcases', {'json': [{'input': '1', 'expected': '1'}]}),
        ('post', '/editor/w1/testcases/add', {'json': {'input': '1'}}),
        ('delete', '/editor/w1/testcases/0', {}),
        ('post', '/editor/w1/testcases/reset', {}),
        ('post', '/editor/w1/testcases/import', {'data': '[{"input": "1"}]'}),
    ])
    def test_edit_rejected_while_batch_runs(self, client, method, path, kwargs):
        client.get('/editor/w1')
        ws = editor_views._workspaces['w1']
        before = list(ws.testcases)
        ws.slot.acquire('batch')
        try:
            resp = getattr(client, method)(path, **kwargs)
        finally:
            ws.slot.release()
        assert resp.status_code == 409
        assert ws.testcases == before

    def test_edit_holds_slot_while_mutating(self, client):
        client.get('/editor/w1')
        ws = editor_views._workspaces['w1']
        seen = []
        original = ws.replace_testcases

        def replace(cases):
            seen.append(ws.slot.holder)
            original(cases)

        with patch.object(ws, 'replace_testcases', side_effect=replace):
            resp = client.put('/editor/w1/testcases', json=[{'input': '1'}])
        assert resp.status_code == 200
        assert seen == ['edit']
        assert not ws.slot.busy

    def test_add_keeps_numeric_zero(self, client):
        client.post('/editor/w1/testcases/add', json={'input': 0, 'expected': 0})
        data = client.get('/editor/w1/testcases').get_json()
        assert data['testcases'][-1]['input'] == '0'
        assert data['testcases'][-1]['expected'] == '0'


class TestWorkspaceRegistryLimits:
    def test_registry_capped(self, client, app):
        app.config['SESSION_REGISTRY_MAX'] = 2
        for wid in ('a', 'b', 'c'):
            client.get(f'/editor/{wid}')
        assert len(editor_views._workspaces) == 2
        assert 'a' not in editor_views._workspaces

    def test_contest_sessions_capped(self, client, app):
        app.config['SESSION_REGISTRY_MAX'] = 1
        client.get('/contest/c1')
        client.get('/contest/c2')
        assert 'c1' not in contest_views._sessions
        assert 'c2' in contest_views._sessions
