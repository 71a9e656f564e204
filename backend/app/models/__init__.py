from .setting import StoredSetting

__all__ = [
    "StoredSetting",
]
