from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime, timezone

from codearena.executor import parse_error
from codearena.executor.client import ExecutionClient
from codearena.executor.common import TestCase, TestcaseImportError
from codearena.executor.normalize import has_expectation, outputs_match
from codearena.executor.pacer import CasePacer, get_endpoint_pacer
from codearena.services.workspace import EditorWorkspace

logger = logging.getLogger(__name__)

FAILED_CASE_OUTPUT = 'Error: Failed to run test case'
IMPORT_ERROR_MESSAGE = 'Failed to import test cases. Invalid file format.'


class BatchService:
    """Runs every test case of a workspace, one after another.

    Each case is written back into the workspace list (and reported through
    *on_case*) as soon as it finishes. A failing case never aborts the rest.
    """

    def __init__(self, client: ExecutionClient, case_delay: float = 0.3,
                 pacer: CasePacer = None):
        self.client = client
        self.pacer = pacer or get_endpoint_pacer(client.base_url, case_delay)

    def run_all(self, workspace: EditorWorkspace, on_case=None) -> list[TestCase]:
        """Run the batch synchronously. No-op for an empty test-case list."""
        if not workspace.testcases:
            return []
        workspace.slot.acquire('batch')
        try:
            return self._run_cases(workspace, on_case)
        finally:
            workspace.slot.release()

    def start(self, workspace: EditorWorkspace, on_case=None) -> threading.Thread | None:
        """Run the batch on a background thread.

        The slot is claimed before the thread starts, so a concurrent start
        is rejected immediately rather than racing.
        """
        if not workspace.testcases:
            return None
        workspace.slot.acquire('batch')

        def _run():
            try:
                self._run_cases(workspace, on_case)
            except Exception as e:
                logger.error(f"Batch thread for workspace {workspace.id} crashed: {e}")
            finally:
                workspace.slot.release()

        t = threading.Thread(target=_run, daemon=True, name=f'batch-{workspace.id}')
        t.start()
        return t

    def _run_cases(self, workspace: EditorWorkspace, on_case) -> list[TestCase]:
        batch = workspace.batch
        with workspace.lock:
            cases = workspace.testcases
            for case in cases:
                case.reset()
            batch.running = True
            batch.error = None
            batch.completed = 0
            workspace.run_state.clear_diagnostic()
            code = workspace.code
            language = workspace.language
            options = workspace.options

        logger.info(f"Batch started in workspace {workspace.id}: {len(cases)} case(s)")
        try:
            for i, case in enumerate(cases):
                self._run_case(workspace, case, code, language, options)
                with workspace.lock:
                    batch.completed = i + 1
                if on_case is not None:
                    self._publish(workspace, on_case, i, case)
                if i < len(cases) - 1:
                    self.pacer.pause()
        finally:
            batch.running = False

        passed = sum(1 for c in cases if c.passed)
        logger.info(
            f"Batch finished in workspace {workspace.id}: "
            f"{passed}/{len(cases)} passed"
        )
        return cases

    @staticmethod
    def _publish(workspace, on_case, index, case):
        try:
            on_case(index, case)
        except Exception as e:
            logger.error(f"Test case callback failed in workspace {workspace.id}: {e}")

    def _run_case(self, workspace, case, code, language, options):
        batch = workspace.batch
        try:
            start = time.perf_counter()
            result = self.client.execute(code, case.input, language)
            runtime_ms = round((time.perf_counter() - start) * 1000)

            passed = None
            if has_expectation(case.expected, options):
                passed = outputs_match(result.output, case.expected, options)

            with workspace.lock:
                batch.compiler_log = result.output
                batch.stdout = result.stdout if result.stdout is not None else result.output
                batch.stderr = result.stderr if result.stderr is not None else ''
                if result.failed and batch.error is None:
                    batch.error = parse_error(language, result.output)
                    workspace.run_state.set_error_line(batch.error.line)
                    workspace.run_state.error_summary = batch.error.summary

                case.output = result.output
                case.passed = passed
                case.runtime_ms = runtime_ms
                case.exit_code = result.exit_code
        except Exception as e:
            logger.error(f"Error running test case in workspace {workspace.id}: {e}")
            with workspace.lock:
                case.output = FAILED_CASE_OUTPUT
                case.passed = False
                case.exit_code = -1


def export_testcases(workspace: EditorWorkspace) -> dict:
    """Serialize input/expected pairs; per-run fields are dropped."""
    with workspace.lock:
        cases = [{'input': tc.input, 'expected': tc.expected} for tc in workspace.testcases]
    timestamp = datetime.now(timezone.utc).isoformat(timespec='milliseconds')
    return {
        'problemId': workspace.problem_id,
        'testcases': cases,
        'timestamp': timestamp.replace('+00:00', 'Z'),
    }


def export_filename(problem_id) -> str:
    return f'testcases-{problem_id}.json' if problem_id else 'testcases.json'


def parse_testcases(raw) -> list[TestCase]:
    """Parse an exported document (text, bytes or decoded JSON).

    Accepts a bare array or an object with a ``testcases`` array.

    Raises:
        TestcaseImportError: for anything else.
    """
    data = raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise TestcaseImportError(IMPORT_ERROR_MESSAGE) from e
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TestcaseImportError(IMPORT_ERROR_MESSAGE) from e

    if isinstance(data, dict) and isinstance(data.get('testcases'), list):
        entries = data['testcases']
    elif isinstance(data, list):
        entries = data
    else:
        raise TestcaseImportError(IMPORT_ERROR_MESSAGE)

    if not all(isinstance(entry, dict) for entry in entries):
        raise TestcaseImportError(IMPORT_ERROR_MESSAGE)
    return [TestCase.from_dict(entry) for entry in entries]


def import_testcases(workspace: EditorWorkspace, raw) -> list[TestCase]:
    """Replace the workspace test cases; the list is untouched on error."""
    cases = parse_testcases(raw)
    workspace.replace_testcases(cases)
    logger.info(f"Imported {len(cases)} test case(s) into workspace {workspace.id}")
    return cases
