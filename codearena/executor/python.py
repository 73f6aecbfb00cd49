from __future__ import annotations

import re

from .base import BaseLanguage, _LINE_SPLIT_RE
from .common import ErrorDiagnostic, SourceLanguage
from . import register_language

_FRAME_RE = re.compile(r'File\s+"[^"]+",\s+line\s+(\d+)', re.IGNORECASE)


@register_language
class PythonLanguage(BaseLanguage):
    LANGUAGE = SourceLanguage.PYTHON
    EDITOR_MODE = 'python'
    DEFAULT_TEMPLATE = "print('Hello Python')"

    def _parse(self, text: str) -> ErrorDiagnostic:
        # the exception message is the last line of a traceback
        non_empty = [ln for ln in _LINE_SPLIT_RE.split(text) if ln.strip()]
        summary = non_empty[-1] if non_empty else 'Error'
        return self._diagnostic(self._collect(_FRAME_RE, text), summary)

    def contest_template(self, problem_title: str) -> str:
        name = re.sub(r'\s+', '_', (problem_title or '').lower())
        return (
            f'def {name}(input):\n'
            '    # Your code here\n'
            '    pass\n'
            '\n'
            '# Example usage:\n'
            f'# result = {name}(sample_input)\n'
            '# print(result)'
        )
