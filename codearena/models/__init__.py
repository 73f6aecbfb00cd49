from .editor_setting import EditorSetting

__all__ = [
    'EditorSetting',
]
