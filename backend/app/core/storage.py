from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .errors import PersistenceError
from ..models.setting import StoredSetting

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """All keys live in one JSON object on disk, replaced atomically on write."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring corrupt storage file %s", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: top-level value is not an object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str], key: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(items, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}", key=key) from exc

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items, key)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._write_all(items, key)


class DatabaseStorage:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_item(self, key: str) -> str | None:
        db = self.session_factory()
        try:
            row = db.get(StoredSetting, key)
            return row.value if row else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read setting {key}: {exc}", key=key) from exc
        finally:
            db.close()

    def set_item(self, key: str, value: str) -> None:
        db = self.session_factory()
        try:
            row = db.get(StoredSetting, key)
            if row:
                row.value = value
            else:
                db.add(StoredSetting(key=key, value=value))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Could not write setting {key}: {exc}", key=key) from exc
        finally:
            db.close()

    def remove_item(self, key: str) -> None:
        db = self.session_factory()
        try:
            row = db.get(StoredSetting, key)
            if row:
                db.delete(row)
                db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise PersistenceError(f"Could not remove setting {key}: {exc}", key=key) from exc
        finally:
            db.close()


def build_storage(settings: Settings | None = None) -> KeyValueStorage:
    settings = settings or get_settings()
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "database":
        from .db import Base, SessionLocal, engine

        Base.metadata.create_all(bind=engine)
        return DatabaseStorage(SessionLocal)
    if backend == "file":
        return JsonFileStorage(settings.storage_path)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
