import pytest

from app.core.events import EventBus
from app.core.errors import PersistenceError
from app.core.storage import MemoryStorage
from app.services.business_hours_service import AvailabilityConfig


class FlakyStorage(MemoryStorage):
    """Memory storage whose writes can be switched off."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def set_item(self, key, value):
        if self.fail_writes:
            raise PersistenceError("disk full", key=key)
        super().set_item(key, value)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def config(storage, bus):
    cfg = AvailabilityConfig(storage, bus)
    cfg.load()
    return cfg
