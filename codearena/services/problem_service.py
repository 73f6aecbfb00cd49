from __future__ import annotations

import logging

from codearena.executor.common import JudgeRequestError, TestCase, _text
from codearena.services.judge_client import JudgeClient
from codearena.services.workspace import EditorWorkspace

logger = logging.getLogger(__name__)


class ProblemLoader:
    """Seeds a workspace from a problem's test cases and starter code."""

    def __init__(self, judge: JudgeClient):
        self.judge = judge

    def load(self, workspace: EditorWorkspace, problem_id: str) -> dict:
        """Best-effort load; a failed lookup leaves one empty test case.

        Returns a summary dict: ``{'testcases': n, 'starterApplied': [...]}``.
        """
        workspace.problem_id = problem_id
        cases = []
        try:
            raw_cases = self.judge.get_problem_testcases(problem_id)
            cases = [
                TestCase(
                    input=_text(tc.get('input')),
                    expected=_text(tc.get('expectedOutput')),
                )
                for tc in raw_cases if isinstance(tc, dict)
            ]
        except JudgeRequestError as e:
            logger.error(f"Failed to load test cases for problem {problem_id}: {e}")
        workspace.replace_testcases(cases or [TestCase()])

        applied = []
        try:
            detail = self.judge.get_problem(problem_id)
            starter = {}
            if isinstance(detail, dict):
                problem = detail.get('problem')
                if isinstance(problem, dict) and problem.get('starterCode'):
                    starter = problem['starterCode']
                else:
                    starter = detail.get('starterCode') or {}
            applied = workspace.apply_starter_code(starter)
        except JudgeRequestError as e:
            logger.warning(f"No starter code for problem {problem_id}: {e}")

        return {
            'testcases': len(workspace.testcases),
            'starterApplied': [lang.value for lang in applied],
        }
