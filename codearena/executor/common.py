from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class CodeArenaError(Exception):
    """Base class for errors raised by the execution workflow."""


class ExecutionError(CodeArenaError):
    """The sandbox could not be reached or answered with a non-2xx status."""


class JudgeRequestError(CodeArenaError):
    """A judging or problem-metadata request failed after all retries."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class TestcaseImportError(CodeArenaError):
    """An imported test-case document has an unsupported shape."""

    __test__ = False


class OperationInProgress(CodeArenaError):
    """Another operation already holds the slot."""


class SourceLanguage(str, Enum):
    JAVA = 'Java'
    CPP = 'Cpp'
    PYTHON = 'Python'
    JAVASCRIPT = 'JavaScript'

    @classmethod
    def resolve(cls, value) -> SourceLanguage | None:
        """Map an editor label or a contest identifier to a language.

        Accepts the enum itself, its editor label (``Cpp``) or any of the
        lowercase aliases used by problem metadata and the judging API
        (``c++``, ``py``, ``node`` ...). Returns None when nothing matches.
        """
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower()
        return _LANGUAGE_ALIASES.get(key)


_LANGUAGE_ALIASES = {
    'java': SourceLanguage.JAVA,
    'cpp': SourceLanguage.CPP,
    'c++': SourceLanguage.CPP,
    'python': SourceLanguage.PYTHON,
    'py': SourceLanguage.PYTHON,
    'javascript': SourceLanguage.JAVASCRIPT,
    'js': SourceLanguage.JAVASCRIPT,
    'node': SourceLanguage.JAVASCRIPT,
}


class Verdict(str, Enum):
    ACCEPTED = 'accepted'
    WRONG_ANSWER = 'wrong_answer'
    RUNTIME_ERROR = 'runtime_error'
    COMPILATION_ERROR = 'compilation_error'
    TIME_LIMIT_EXCEEDED = 'time_limit_exceeded'
    ERROR = 'error'
    RUNNING = 'running'

    @property
    def is_terminal(self) -> bool:
        return self is not Verdict.RUNNING

    @classmethod
    def parse(cls, raw) -> Verdict:
        """Coerce a judge status string; unknown values become ERROR."""
        key = str(raw or '').strip().lower().replace(' ', '_')
        try:
            return cls(key)
        except ValueError:
            return cls.ERROR


def _text(value) -> str:
    """Coerce a JSON scalar to text; only a missing value becomes empty."""
    return '' if value is None else str(value)


def _first_present(data: dict, *keys):
    return next((data[k] for k in keys if data.get(k) is not None), None)


def _number(value):
    # bool is an int subclass but never a meaningful metric
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


@dataclass
class ExecutionResult:
    output: str
    stdout: str | None = None
    stderr: str | None = None
    exit_code: int | None = None
    runtime_ms: float | None = None
    memory_kb: float | None = None

    @property
    def failed(self) -> bool:
        return self.exit_code is not None and self.exit_code != 0

    def to_dict(self) -> dict:
        return {
            'output': self.output,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'exitCode': self.exit_code,
            'runtimeMs': self.runtime_ms,
            'memoryKb': self.memory_kb,
        }


@dataclass
class ErrorDiagnostic:
    line: int | None = None
    summary: str | None = None
    lines: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'line': self.line, 'summary': self.summary, 'lines': list(self.lines)}


@dataclass
class TestCase:
    __test__ = False

    input: str = ''
    expected: str = ''
    output: str | None = None
    passed: bool | None = None
    runtime_ms: int | None = None
    exit_code: int | None = None

    def reset(self):
        """Drop the transient per-run fields, keeping input and expected."""
        self.output = None
        self.passed = None
        self.runtime_ms = None
        self.exit_code = None

    @classmethod
    def from_dict(cls, data: dict) -> TestCase:
        return cls(
            input=_text(data.get('input')),
            expected=_text(data.get('expected')),
        )

    def to_dict(self) -> dict:
        return {
            'input': self.input,
            'expected': self.expected,
            'output': self.output,
            'passed': self.passed,
            'runtimeMs': self.runtime_ms,
            'exitCode': self.exit_code,
        }


@dataclass(frozen=True)
class TestCaseResult:
    __test__ = False

    input: str = ''
    expected_output: str = ''
    actual_output: str = ''
    passed: bool = False
    error: str | None = None
    runtime: str | float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TestCaseResult:
        return cls(
            input=_text(data.get('input')),
            expected_output=_text(_first_present(data, 'expectedOutput', 'expected')),
            actual_output=_text(_first_present(data, 'actualOutput', 'actual')),
            passed=bool(data.get('passed')),
            error=data.get('error'),
            runtime=data.get('runtime'),
        )

    def to_dict(self) -> dict:
        return {
            'input': self.input,
            'expectedOutput': self.expected_output,
            'actualOutput': self.actual_output,
            'passed': self.passed,
            'error': self.error,
            'runtime': self.runtime,
        }


@dataclass(frozen=True)
class CodeExecutionResult:
    status: Verdict
    message: str | None = None
    error: str | None = None
    test_cases: tuple[TestCaseResult, ...] = ()
    tests_passed: int | None = None
    total_tests: int | None = None
    runtime_ms: float | None = None
    memory_kb: float | None = None
    is_submission: bool | None = None
    earned_codecoin: bool | None = None
    codecoin_reward: int | None = None

    @property
    def accepted(self) -> bool:
        return self.status is Verdict.ACCEPTED

    def settle(self, status: Verdict, **changes) -> CodeExecutionResult:
        """Return the terminal successor of a ``running`` result.

        A result that already carries a terminal verdict cannot move again.
        """
        if self.status.is_terminal:
            raise ValueError(f'Result already settled as {self.status.value}')
        if not status.is_terminal:
            raise ValueError('A running result must settle to a terminal status')
        return replace(self, status=status, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> CodeExecutionResult:
        data = data if isinstance(data, dict) else {}
        raw_cases = data.get('testCases')
        if raw_cases is None:
            raw_cases = data.get('results')
        cases = tuple(
            TestCaseResult.from_dict(tc) for tc in (raw_cases or []) if isinstance(tc, dict)
        )
        return cls(
            status=Verdict.parse(data.get('status')),
            message=data.get('message'),
            error=data.get('error'),
            test_cases=cases,
            tests_passed=_number(data.get('testsPassed')),
            total_tests=_number(data.get('totalTests')),
            runtime_ms=_number(data.get('runtimeMs')),
            memory_kb=_number(data.get('memoryKb')),
            is_submission=data.get('isSubmission'),
            earned_codecoin=data.get('earnedCodecoin'),
            codecoin_reward=_number(data.get('codecoinReward')),
        )

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'message': self.message,
            'error': self.error,
            'testCases': [tc.to_dict() for tc in self.test_cases],
            'testsPassed': self.tests_passed,
            'totalTests': self.total_tests,
            'runtimeMs': self.runtime_ms,
            'memoryKb': self.memory_kb,
            'isSubmission': self.is_submission,
            'earnedCodecoin': self.earned_codecoin,
            'codecoinReward': self.codecoin_reward,
        }


@dataclass(frozen=True)
class Submission:
    id: str
    problem_id: str
    code: str
    language: str
    status: Verdict
    test_cases: tuple[TestCaseResult, ...] = ()
    runtime: str | float | None = None
    message: str | None = None
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Submission:
        problem = data.get('problemId')
        # populated references arrive as objects
        if isinstance(problem, dict):
            problem = problem.get('_id')
        return cls(
            id=str(data.get('_id') or data.get('id') or ''),
            problem_id=str(problem or ''),
            code=str(data.get('code') or ''),
            language=str(data.get('language') or ''),
            status=Verdict.parse(data.get('status')),
            test_cases=tuple(
                TestCaseResult.from_dict(tc)
                for tc in (data.get('testCases') or []) if isinstance(tc, dict)
            ),
            runtime=data.get('runtime'),
            message=data.get('message'),
            created_at=data.get('createdAt'),
        )

    def to_result(self) -> CodeExecutionResult:
        """The result view shown when this submission is loaded from history."""
        passed = sum(1 for tc in self.test_cases if tc.passed)
        return CodeExecutionResult(
            status=self.status,
            message=self.message,
            test_cases=self.test_cases,
            tests_passed=passed if self.test_cases else None,
            total_tests=len(self.test_cases) if self.test_cases else None,
            runtime_ms=_number(self.runtime),
            is_submission=True,
        )

    def to_dict(self) -> dict:
        return {
            '_id': self.id,
            'problemId': self.problem_id,
            'code': self.code,
            'language': self.language,
            'status': self.status.value,
            'testCases': [tc.to_dict() for tc in self.test_cases],
            'runtime': self.runtime,
            'message': self.message,
            'createdAt': self.created_at,
        }
