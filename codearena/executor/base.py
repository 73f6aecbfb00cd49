from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

from .common import ErrorDiagnostic, SourceLanguage

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r'\r?\n')


class BaseLanguage(ABC):
    """One supported source language.

    Subclasses declare the editor metadata and implement the diagnostic
    grammar in :meth:`_parse`. :meth:`parse` wraps it so callers never see an
    exception from a malformed toolchain message.
    """

    LANGUAGE: SourceLanguage = None
    EDITOR_MODE: str = ''
    DEFAULT_TEMPLATE: str = ''

    @property
    def name(self) -> str:
        return self.LANGUAGE.value

    def parse(self, text) -> ErrorDiagnostic:
        try:
            return self._parse('' if text is None else str(text))
        except Exception as e:
            logger.debug(f'Diagnostic parse failed for {self.name}: {e}')
            return ErrorDiagnostic()

    @abstractmethod
    def _parse(self, text: str) -> ErrorDiagnostic:
        ...

    @abstractmethod
    def contest_template(self, problem_title: str) -> str:
        ...

    def prepare_source(self, code: str) -> str:
        """Rewrite source before it is sent to the sandbox. Identity by default."""
        return code

    @staticmethod
    def _collect(pattern: re.Pattern, text: str) -> list[int]:
        return [int(m.group(1)) for m in pattern.finditer(text)]

    @staticmethod
    def _first_line(text: str) -> str | None:
        return _LINE_SPLIT_RE.split(text)[0] or None

    @staticmethod
    def _diagnostic(lines: list[int], summary: str | None) -> ErrorDiagnostic:
        return ErrorDiagnostic(line=lines[0] if lines else None, summary=summary, lines=lines)


class PlainTextLanguage(BaseLanguage):
    """Fallback grammar for identifiers outside the registry."""

    def _parse(self, text: str) -> ErrorDiagnostic:
        summary = next((ln for ln in _LINE_SPLIT_RE.split(text) if ln.strip()), None)
        return ErrorDiagnostic(line=None, summary=summary, lines=[])

    def contest_template(self, problem_title: str) -> str:
        return ''

    @property
    def name(self) -> str:
        return 'Plain'
