"""Per-session editor state shared by the single-run and batch orchestrators."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from codearena.executor import default_templates
from codearena.executor.common import ErrorDiagnostic, SourceLanguage, TestCase
from codearena.executor.normalize import CompareOptions
from codearena.services.editor_store import EXPECTED_KEY, INPUT_KEY, KeyValueStore, MemoryStore
from codearena.services.task_slot import TaskSlot

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    running: bool = False
    output: str = ''
    stdout: str = ''
    stderr: str = ''
    compiler_log: str = ''
    runtime_ms: float | None = None
    memory_kb: float | None = None
    exit_code: int | None = None
    passed: bool | None = None
    error_line: int | None = None
    error_summary: str | None = None
    error_lines: list[int] = field(default_factory=list)
    error_index: int = 0
    show_log: bool = False
    highlights: list[int] = field(default_factory=list)

    def set_error_line(self, line: int | None):
        """Move the highlighted line; the previous highlight is always dropped."""
        self.error_line = line
        self.highlights = [line] if line and line > 0 else []

    def clear_diagnostic(self):
        self.set_error_line(None)
        self.error_summary = None
        self.error_lines = []
        self.error_index = 0

    def apply_diagnostic(self, diagnostic: ErrorDiagnostic):
        self.set_error_line(diagnostic.line)
        self.error_summary = diagnostic.summary
        self.error_lines = list(diagnostic.lines) or (
            [diagnostic.line] if diagnostic.line else []
        )
        self.error_index = 0

    def next_error(self) -> int | None:
        """Cycle to the next recorded error line, wrapping around."""
        if not self.error_lines:
            return None
        self.error_index = (self.error_index + 1) % len(self.error_lines)
        self.set_error_line(self.error_lines[self.error_index])
        return self.error_line

    def to_dict(self) -> dict:
        return {
            'running': self.running,
            'output': self.output,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'compilerLog': self.compiler_log,
            'runtimeMs': self.runtime_ms,
            'memoryKb': self.memory_kb,
            'exitCode': self.exit_code,
            'passed': self.passed,
            'errorLine': self.error_line,
            'errorSummary': self.error_summary,
            'errorLines': list(self.error_lines),
            'errorIndex': self.error_index,
            'showLog': self.show_log,
            'highlights': list(self.highlights),
        }


@dataclass
class BatchState:
    running: bool = False
    error: ErrorDiagnostic | None = None
    compiler_log: str = ''
    stdout: str = ''
    stderr: str = ''
    completed: int = 0

    def to_dict(self) -> dict:
        return {
            'running': self.running,
            'error': self.error.to_dict() if self.error else None,
            'compilerLog': self.compiler_log,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'completed': self.completed,
        }


class EditorWorkspace:
    """Code buffers, stdin/expected fields and the ordered test-case list.

    The input and expected-output fields are restored from, and written
    through to, the injected key-value store.
    """

    def __init__(self, workspace_id: str = 'default', store: KeyValueStore = None,
                 language=SourceLanguage.CPP, options: CompareOptions = None):
        self.id = workspace_id
        self.store = store or MemoryStore()
        self.language = SourceLanguage.resolve(language) or SourceLanguage.CPP
        self.buffers = dict(default_templates())
        self.options = options or CompareOptions()
        self.testcases = [TestCase()]
        self.problem_id = None
        self.run_state = RunState()
        self.batch = BatchState()
        self.slot = TaskSlot(f'workspace {workspace_id}')
        self.lock = threading.RLock()
        self._input = self.store.get(INPUT_KEY, '') or ''
        self._expected = self.store.get(EXPECTED_KEY, '') or ''

    @property
    def input(self) -> str:
        return self._input

    @input.setter
    def input(self, value):
        self._input = value or ''
        self.store.set(INPUT_KEY, self._input)

    @property
    def expected(self) -> str:
        return self._expected

    @expected.setter
    def expected(self, value):
        self._expected = value or ''
        self.store.set(EXPECTED_KEY, self._expected)

    @property
    def code(self) -> str:
        return self.buffers.get(self.language, '')

    @code.setter
    def code(self, value):
        self.buffers[self.language] = value or ''

    def set_language(self, value):
        lang = SourceLanguage.resolve(value)
        if lang is None:
            raise ValueError(f'Unsupported language: {value}')
        self.language = lang

    def is_default_buffer(self, language) -> bool:
        lang = SourceLanguage.resolve(language)
        return self.buffers.get(lang) == default_templates().get(lang)

    def apply_starter_code(self, starter_code: dict) -> list[SourceLanguage]:
        """Install problem starter code into buffers the user has not edited.

        Keys are language aliases (``cpp``, ``c++``, ``py``, ``node`` ...);
        unknown keys and empty values are ignored.
        """
        applied = []
        if not isinstance(starter_code, dict):
            return applied
        for key, value in starter_code.items():
            lang = SourceLanguage.resolve(key)
            if lang is None or not isinstance(value, str) or not value:
                continue
            if self.is_default_buffer(lang):
                self.buffers[lang] = value
                applied.append(lang)
        return applied

    # Test-case list editing

    def add_testcase(self, input: str = '', expected: str = '') -> TestCase:
        with self.lock:
            case = TestCase(input=input, expected=expected)
            self.testcases.append(case)
            return case

    def remove_testcase(self, index: int):
        with self.lock:
            if not 0 <= index < len(self.testcases):
                raise IndexError(f'No test case at position {index}')
            del self.testcases[index]

    def reset_testcases(self):
        with self.lock:
            self.testcases = [TestCase()]

    def replace_testcases(self, cases: list[TestCase]):
        with self.lock:
            self.testcases = list(cases)

    def to_dict(self) -> dict:
        with self.lock:
            return {
                'id': self.id,
                'language': self.language.value,
                'code': self.code,
                'input': self.input,
                'expected': self.expected,
                'problemId': self.problem_id,
                'ignoreWhitespace': self.options.ignore_whitespace,
                'ignoreCase': self.options.ignore_case,
                'busy': self.slot.busy,
                'run': self.run_state.to_dict(),
                'batch': self.batch.to_dict(),
                'testcases': [tc.to_dict() for tc in self.testcases],
            }
