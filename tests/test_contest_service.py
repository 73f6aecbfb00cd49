"""Tests for the contest run/submit workflow."""

import threading
from unittest.mock import MagicMock

import pytest

from codearena.executor.common import (
    CodeExecutionResult, JudgeRequestError, OperationInProgress, Submission, Verdict,
)
from codearena.services.contest_service import ContestService, ContestSession, template_for


ACCEPTED = {
    'status': 'accepted',
    'testCases': [
        {'input': '1 2', 'expectedOutput': '3', 'actualOutput': '3', 'passed': True},
    ],
    'testsPassed': 1,
    'totalTests': 1,
    'runtimeMs': 8,
}

SUBMISSIONS = {
    'data': [
        {
            '_id': 's1',
            'problemId': {'_id': 'p1', 'title': 'Sum'},
            'code': 'print(3)',
            'language': 'python',
            'status': 'wrong_answer',
            'testCases': [
                {'input': '1', 'expectedOutput': '2', 'actualOutput': '3', 'passed': False},
                {'input': '2', 'expectedOutput': '4', 'actualOutput': '4', 'passed': True},
            ],
            'runtime': 15,
            'createdAt': '2024-05-01T10:00:00Z',
        },
    ],
}


def _session(code='print(3)'):
    session = ContestSession('c1', language='python')
    session.problem_id = 'p1'
    session.code = code
    return session


class TestContestRun:
    def test_run_sets_result_and_notice(self):
        judge = MagicMock()
        judge.execute.return_value = ACCEPTED
        session = _session()

        result = ContestService(judge).run(session, 'p1')

        judge.execute.assert_called_once_with({
            'problemId': 'p1', 'code': 'print(3)', 'language': 'python', 'isSubmission': False,
        })
        assert result.accepted
        assert session.result is result
        assert [n.message for n in session.drain_notices()] == ['Code executed successfully!']
        assert session.drain_notices() == []

    def test_blank_code_is_noop(self):
        judge = MagicMock()
        assert ContestService(judge).run(_session(code='   '), 'p1') is None
        judge.execute.assert_not_called()

    def test_run_failure_notice(self):
        judge = MagicMock()
        judge.execute.side_effect = JudgeRequestError('Request failed (500)', status_code=500)
        session = _session()
        assert ContestService(judge).run(session, 'p1') is None
        notices = session.drain_notices()
        assert [(n.level, n.message) for n in notices] == [('error', 'Failed to execute code')]


class TestContestSubmit:
    def test_accepted_submission_refreshes_history(self):
        judge = MagicMock()
        judge.submit.return_value = ACCEPTED
        judge.list_submissions.return_value = SUBMISSIONS['data']
        session = _session()

        result = ContestService(judge).submit(session, 'p1')

        payload = judge.submit.call_args.args[0]
        assert payload['contestId'] == 'c1'
        assert payload['isSubmission'] is True
        judge.list_submissions.assert_called_once_with('c1')
        assert result.accepted
        assert [s.id for s in session.submissions] == ['s1']
        assert [n.message for n in session.drain_notices()] == ['Submission accepted!']

    def test_rejected_submission_notice(self):
        judge = MagicMock()
        judge.submit.return_value = {'status': 'runtime_error', 'error': 'Segfault'}
        judge.list_submissions.return_value = []
        session = _session()
        ContestService(judge).submit(session, 'p1')
        notices = session.drain_notices()
        assert notices[0].level == 'error'
        assert notices[0].message == 'Submission failed: Segfault'

    def test_rejected_without_error_text(self):
        judge = MagicMock()
        judge.submit.return_value = {'status': 'wrong_answer'}
        judge.list_submissions.return_value = []
        session = _session()
        ContestService(judge).submit(session, 'p1')
        assert session.drain_notices()[0].message == 'Submission failed: Wrong answer'

    def test_submit_failure_notice(self):
        judge = MagicMock()
        judge.submit.side_effect = JudgeRequestError('timeout')
        session = _session()
        assert ContestService(judge).submit(session, 'p1') is None
        assert session.drain_notices()[0].message == 'Failed to submit solution'
        judge.list_submissions.assert_not_called()

    def test_second_submit_rejected_while_in_flight(self):
        started = threading.Event()
        finish = threading.Event()

        def slow_submit(payload):
            started.set()
            finish.wait(5)
            return ACCEPTED

        judge = MagicMock()
        judge.submit.side_effect = slow_submit
        judge.list_submissions.return_value = []
        session = _session()
        service = ContestService(judge)

        worker = threading.Thread(target=service.submit, args=(session, 'p1'))
        worker.start()
        assert started.wait(5)
        try:
            assert session.is_submitting('p1')
            with pytest.raises(OperationInProgress):
                service.submit(session, 'p1')
        finally:
            finish.set()
            worker.join(5)
        assert judge.submit.call_count == 1
        assert not session.is_submitting('p1')

    def test_other_problem_not_blocked(self):
        session = _session()
        session.slot_for('p1').acquire('submit')
        judge = MagicMock()
        judge.execute.return_value = ACCEPTED
        try:
            assert ContestService(judge).run(session, 'p2') is not None
        finally:
            session.slot_for('p1').release()


class TestSubmissionHistory:
    def test_full_refetch_replaces_list(self):
        judge = MagicMock()
        judge.list_submissions.return_value = SUBMISSIONS['data']
        session = _session()
        session.submissions = [Submission.from_dict({'_id': 'old'})]

        ContestService(judge).refresh_submissions(session)
        assert [s.id for s in session.submissions] == ['s1']
        assert session.submissions[0].problem_id == 'p1'

    def test_refresh_failure_keeps_list(self):
        judge = MagicMock()
        judge.list_submissions.side_effect = JudgeRequestError('down')
        session = _session()
        session.submissions = [Submission.from_dict({'_id': 'kept'})]
        ContestService(judge).refresh_submissions(session)
        assert [s.id for s in session.submissions] == ['kept']

    def test_load_submission(self):
        session = ContestSession('c1', language='javascript')
        submission = Submission.from_dict(SUBMISSIONS['data'][0])

        ContestService.load_submission(session, submission)

        assert session.code == 'print(3)'
        assert session.language == 'python'
        assert session.problem_id == 'p1'
        assert session.result.status is Verdict.WRONG_ANSWER
        assert session.result.tests_passed == 1
        assert session.result.total_tests == 2
        assert session.result.runtime_ms == 15
        assert session.result.is_submission is True

    def test_select_problem_uses_language_template(self):
        session = ContestSession('c1')
        ContestService(MagicMock()).select_problem(session, 'p9', 'Two Sum', language='python')
        assert session.problem_id == 'p9'
        assert session.code.startswith('def two_sum(input):')
        assert template_for('rust', 'x') == ''


class TestCodeExecutionResult:
    def test_results_alias(self):
        result = CodeExecutionResult.from_dict({
            'status': 'wrong_answer',
            'results': [{'input': '1', 'expected': '2', 'actual': '3', 'passed': False}],
        })
        case = result.test_cases[0]
        assert case.expected_output == '2'
        assert case.actual_output == '3'

    def test_unknown_status_is_error(self):
        assert CodeExecutionResult.from_dict({'status': 'weird'}).status is Verdict.ERROR

    def test_non_dict_body(self):
        assert CodeExecutionResult.from_dict(None).status is Verdict.ERROR

    def test_settle_running_result(self):
        running = CodeExecutionResult(status=Verdict.RUNNING)
        done = running.settle(Verdict.ACCEPTED, tests_passed=3, total_tests=3)
        assert done.status is Verdict.ACCEPTED
        assert done.tests_passed == 3
        assert running.status is Verdict.RUNNING

    def test_settle_is_one_way(self):
        done = CodeExecutionResult(status=Verdict.ACCEPTED)
        with pytest.raises(ValueError, match='already settled'):
            done.settle(Verdict.WRONG_ANSWER)

    def test_settle_requires_terminal_status(self):
        with pytest.raises(ValueError):
            CodeExecutionResult(status=Verdict.RUNNING).settle(Verdict.RUNNING)

    def test_bool_metrics_ignored(self):
        result = CodeExecutionResult.from_dict({'status': 'accepted', 'runtimeMs': True})
        assert result.runtime_ms is None
