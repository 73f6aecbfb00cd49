from __future__ import annotations

import re

from .base import BaseLanguage
from .common import ErrorDiagnostic, SourceLanguage
from . import register_language

# g++: main.cpp:12:5: error: expected ';' before '}' token
_ERROR_RE = re.compile(r':(\d+)(?::\d+)?\s*:.*error', re.IGNORECASE)


@register_language
class CppLanguage(BaseLanguage):
    LANGUAGE = SourceLanguage.CPP
    EDITOR_MODE = 'cpp'
    DEFAULT_TEMPLATE = (
        '#include <bits/stdc++.h>\n'
        'using namespace std;\n'
        'int main(){\n'
        '  cout << "Hello Cpp\\n";\n'
        '  return 0;\n'
        '}'
    )

    def _parse(self, text: str) -> ErrorDiagnostic:
        return self._diagnostic(self._collect(_ERROR_RE, text), self._first_line(text))

    def contest_template(self, problem_title: str) -> str:
        return (
            '#include <iostream>\n'
            '#include <vector>\n'
            '\n'
            'using namespace std;\n'
            '\n'
            'class Solution {\n'
            'public:\n'
            '    // Your code here\n'
            '};\n'
            '\n'
            'int main() {\n'
            '    Solution sol;\n'
            '    // Example usage\n'
            '    return 0;\n'
            '}'
        )
