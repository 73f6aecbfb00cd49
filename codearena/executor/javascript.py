from __future__ import annotations

import re

from .base import BaseLanguage
from .common import ErrorDiagnostic, SourceLanguage
from . import register_language

# node stack frames: at Object.<anonymous> (/tmp/main.js:3:15)
_POSITION_RE = re.compile(r':(\d+):(\d+)')


@register_language
class JavaScriptLanguage(BaseLanguage):
    LANGUAGE = SourceLanguage.JAVASCRIPT
    EDITOR_MODE = 'javascript'
    DEFAULT_TEMPLATE = "console.log('Hello JavaScript');"

    def _parse(self, text: str) -> ErrorDiagnostic:
        return self._diagnostic(self._collect(_POSITION_RE, text), self._first_line(text))

    def contest_template(self, problem_title: str) -> str:
        name = re.sub(r'\s+', '', problem_title or '')
        return (
            f'function {name}(input) {{\n'
            '  // Your code here\n'
            '  \n'
            '}\n'
            '\n'
            '// Example usage:\n'
            f'// const result = {name}(sampleInput);\n'
            '// console.log(result);'
        )
