import os
import importlib
import pkgutil
import logging
from types import MappingProxyType

from .common import ErrorDiagnostic, SourceLanguage

logger = logging.getLogger(__name__)

_registry = {}
_templates = None


def register_language(cls):
    """Decorator to register a source language implementation."""
    _registry[cls.LANGUAGE] = cls()
    logger.info(f"Registered language: {cls.LANGUAGE.value} ({cls.EDITOR_MODE})")
    return cls


def get_language(value):
    """Return the registered language for a label or alias, or None."""
    lang = SourceLanguage.resolve(value)
    if lang is None:
        return None
    return _registry.get(lang)


def get_all_languages():
    return dict(_registry)


def default_templates():
    """Immutable starter-code table keyed by SourceLanguage, built once."""
    global _templates
    if _templates is None:
        _templates = MappingProxyType(
            {lang: impl.DEFAULT_TEMPLATE for lang, impl in _registry.items()}
        )
    return _templates


def parse_error(language, text) -> ErrorDiagnostic:
    """Extract line numbers and a summary from toolchain output.

    Unknown languages fall back to the plain-text grammar. Never raises.
    """
    from .base import PlainTextLanguage

    impl = get_language(language) or PlainTextLanguage()
    return impl.parse(text)


def _auto_discover():
    package_dir = os.path.dirname(__file__)
    for _, module_name, _ in pkgutil.iter_modules([package_dir]):
        if module_name not in ('base', 'common', 'client', 'normalize', 'pacer', '__init__'):
            try:
                importlib.import_module(f'.{module_name}', package=__package__)
            except Exception as e:
                logger.error(f"Failed to load language module {module_name}: {e}")


_auto_discover()
