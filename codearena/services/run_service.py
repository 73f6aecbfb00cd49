from __future__ import annotations

import logging

from codearena.executor import parse_error
from codearena.executor.client import ExecutionClient
from codearena.executor.normalize import has_expectation, outputs_match
from codearena.services.workspace import EditorWorkspace, RunState

logger = logging.getLogger(__name__)


class RunService:
    def __init__(self, client: ExecutionClient):
        self.client = client

    def run(self, workspace: EditorWorkspace) -> RunState:
        """Run the current buffer once against the workspace input.

        Holds the workspace slot for the duration of the call, so a second
        run or a batch started meanwhile is rejected with OperationInProgress.
        Transport and processing failures end up in the returned state.
        """
        with workspace.slot.hold('run'):
            state = workspace.run_state
            state.running = True
            state.output = ''
            state.clear_diagnostic()
            try:
                result = self.client.execute(workspace.code, workspace.input, workspace.language)

                state.output = result.output
                state.stdout = result.stdout if result.stdout is not None else result.output
                state.stderr = result.stderr if result.stderr is not None else ''
                state.compiler_log = result.output
                state.runtime_ms = result.runtime_ms
                state.memory_kb = result.memory_kb
                state.exit_code = result.exit_code

                if result.failed:
                    diagnostic = parse_error(workspace.language, result.output)
                    state.apply_diagnostic(diagnostic)
                    state.show_log = True
                    logger.info(
                        f"Run in {workspace.id} exited with {result.exit_code} "
                        f"(line={diagnostic.line})"
                    )

                if has_expectation(workspace.expected, workspace.options):
                    state.passed = outputs_match(result.output, workspace.expected, workspace.options)
                else:
                    state.passed = None
            except Exception as e:
                logger.error(f"Run failed in workspace {workspace.id}: {e}")
                message = str(e) or 'Run failed'
                state.output = message
                state.compiler_log = message
                state.runtime_ms = None
                state.memory_kb = None
                state.exit_code = None
                state.passed = False
            finally:
                state.running = False
            return state
