"""Contest run/submit workflow against the judging API."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from codearena.executor import get_language
from codearena.executor.common import (
    CodeExecutionResult, JudgeRequestError, Submission,
)
from codearena.services.judge_client import JudgeClient
from codearena.services.task_slot import TaskSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A transient message for the toast channel."""

    level: str  # success | error
    message: str

    def to_dict(self) -> dict:
        return {'level': self.level, 'message': self.message}


def template_for(language: str, problem_title: str) -> str:
    impl = get_language(language)
    return impl.contest_template(problem_title) if impl else ''


class ContestSession:
    """Client-side state of one contest: buffer, verdict banner, history."""

    def __init__(self, contest_id: str, language: str = 'javascript'):
        self.contest_id = contest_id
        self.language = language
        self.code = ''
        self.problem_id = None
        self.result: CodeExecutionResult | None = None
        self.submissions: list[Submission] = []
        self.notices: list[Notice] = []
        self._slots = {}
        self._slots_lock = threading.Lock()

    def slot_for(self, problem_id: str) -> TaskSlot:
        with self._slots_lock:
            slot = self._slots.get(problem_id)
            if slot is None:
                slot = TaskSlot(f'problem {problem_id}')
                self._slots[problem_id] = slot
            return slot

    def is_submitting(self, problem_id: str) -> bool:
        with self._slots_lock:
            slot = self._slots.get(problem_id)
        return bool(slot and slot.busy)

    @property
    def busy(self) -> bool:
        with self._slots_lock:
            return any(slot.busy for slot in self._slots.values())

    def notify(self, level: str, message: str):
        self.notices.append(Notice(level, message))

    def drain_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

    def to_dict(self) -> dict:
        return {
            'contestId': self.contest_id,
            'problemId': self.problem_id,
            'language': self.language,
            'code': self.code,
            'isSubmitting': self.is_submitting(self.problem_id) if self.problem_id else False,
            'result': self.result.to_dict() if self.result else None,
            'submissions': [s.to_dict() for s in self.submissions],
        }


class ContestService:
    def __init__(self, judge: JudgeClient):
        self.judge = judge

    def select_problem(self, session: ContestSession, problem_id: str,
                       problem_title: str = '', language: str = None):
        """Switch to a problem and reset the buffer to the language template."""
        if language:
            session.language = language
        session.problem_id = problem_id
        session.code = template_for(session.language, problem_title)

    def refresh_submissions(self, session: ContestSession) -> list[Submission]:
        """Refetch the full submission list; no incremental merge."""
        try:
            raw = self.judge.list_submissions(session.contest_id)
        except JudgeRequestError as e:
            logger.error(f"Error fetching submissions for contest {session.contest_id}: {e}")
            return session.submissions
        session.submissions = [Submission.from_dict(s) for s in raw if isinstance(s, dict)]
        return session.submissions

    def run(self, session: ContestSession, problem_id: str) -> CodeExecutionResult | None:
        """Feedback-only run against sample cases; nothing is persisted."""
        if not problem_id or not session.code.strip():
            return None
        with session.slot_for(problem_id).hold('run'):
            try:
                data = self.judge.execute({
                    'problemId': problem_id,
                    'code': session.code,
                    'language': session.language,
                    'isSubmission': False,
                })
            except JudgeRequestError as e:
                logger.error(f"Execution error for problem {problem_id}: {e}")
                session.notify('error', 'Failed to execute code')
                return None
            session.result = CodeExecutionResult.from_dict(data)
            session.notify('success', 'Code executed successfully!')
            return session.result

    def submit(self, session: ContestSession, problem_id: str) -> CodeExecutionResult | None:
        """Graded, persisted submission.

        Raises OperationInProgress while another request for the same
        problem is outstanding.
        """
        if not problem_id or not session.code.strip():
            return None
        with session.slot_for(problem_id).hold('submit'):
            try:
                data = self.judge.submit({
                    'problemId': problem_id,
                    'contestId': session.contest_id,
                    'code': session.code,
                    'language': session.language,
                    'isSubmission': True,
                })
            except JudgeRequestError as e:
                logger.error(f"Submission error for problem {problem_id}: {e}")
                session.notify('error', 'Failed to submit solution')
                return None

            result = CodeExecutionResult.from_dict(data)
            self.refresh_submissions(session)
            session.result = result
            if result.accepted:
                session.notify('success', 'Submission accepted!')
            else:
                session.notify('error', f"Submission failed: {result.error or 'Wrong answer'}")
            logger.info(
                f"Submission for problem {problem_id} in contest "
                f"{session.contest_id}: {result.status.value}"
            )
            return result

    @staticmethod
    def load_submission(session: ContestSession, submission: Submission):
        """Replace buffer, language and displayed result with a past submission."""
        session.code = submission.code
        session.language = submission.language or session.language
        session.problem_id = submission.problem_id or session.problem_id
        session.result = submission.to_result()
