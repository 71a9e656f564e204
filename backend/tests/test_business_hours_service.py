import json
import logging
import threading

import pytest

from app.core.errors import PersistenceError, ValidationError
from app.core.events import BUSINESS_HOURS_CHANGED
from app.schemas.business_hours import DAY_NUMBER_TO_NAME, WEEK_DAYS
from app.services import business_hours_service
from app.services.business_hours_service import (
    REFRESH_FLAG_KEY,
    SCHEDULE_KEY,
    AvailabilityConfig,
    appointment_list_should_refresh,
    clear_appointment_list_refresh,
    compute_days_off,
    default_schedule,
)


def _stored(storage):
    return json.loads(storage.get_item(SCHEDULE_KEY))


def test_load_returns_defaults_when_nothing_is_stored(config):
    schedule = config.schedule
    assert list(schedule.days_open) == list(WEEK_DAYS)
    assert schedule.days_open["friday"].open is False
    for day in WEEK_DAYS:
        if day != "friday":
            assert schedule.days_open[day].open is True
            assert schedule.days_open[day].start == "10:00"
            assert schedule.days_open[day].end == "20:00"
    assert schedule.working_hours.days_off == [5]
    assert schedule.appointment_buffer == 15
    assert config.state == "clean"


def test_toggle_day_twice_restores_original_value(config):
    before = config.draft.days_open["friday"].open
    config.toggle_day("friday")
    assert config.draft.days_open["friday"].open is not before
    config.toggle_day("friday")
    assert config.draft.days_open["friday"].open is before


def test_toggle_and_set_window_mark_draft_dirty_without_persisting(config, storage):
    config.toggle_day("monday")
    assert config.is_dirty
    config.set_window("09:00", "17:00")
    assert storage.get_item(SCHEDULE_KEY) is None
    # persisted view is untouched until save
    assert config.schedule.days_open["monday"].open is True
    assert config.draft.days_open["monday"].start == "10:00"


def test_toggle_unknown_day_raises_validation_error(config):
    with pytest.raises(ValidationError):
        config.toggle_day("funday")
    assert not config.is_dirty


def test_opening_friday_removes_it_from_days_off(config, storage):
    config.toggle_day("friday")
    saved = config.save()
    assert saved.days_open["friday"].open is True
    assert 5 not in saved.working_hours.days_off
    assert _stored(storage)["daysOpen"]["friday"]["open"] is True
    assert _stored(storage)["workingHours"]["daysOff"] == []
    assert config.state == "clean"


def test_days_off_always_matches_closed_days(config):
    for day in ["sunday", "wednesday", "friday", "saturday"]:
        config.toggle_day(day)
        saved = config.save()
        expected = [n for n, name in enumerate(DAY_NUMBER_TO_NAME) if not saved.days_open[name].open]
        assert saved.working_hours.days_off == expected


def test_save_overwrites_custom_per_day_hours_with_shared_window(storage, bus):
    stored = default_schedule().model_dump(by_alias=True)
    stored["daysOpen"]["tuesday"] = {"open": True, "start": "12:00", "end": "22:00"}
    storage.set_item(SCHEDULE_KEY, json.dumps(stored))
    config = AvailabilityConfig(storage, bus)
    assert config.load().days_open["tuesday"].start == "12:00"

    config.set_window("09:00", "17:00")
    saved = config.save()
    for day in WEEK_DAYS:
        assert saved.days_open[day].start == "09:00"
        assert saved.days_open[day].end == "17:00"
    assert saved.working_hours.start == "09:00"
    assert saved.working_hours.end == "17:00"


def test_set_window_accepts_twelve_hour_input(config):
    draft = config.set_window("9:30 AM", "6:00 PM")
    assert draft.working_hours.start == "09:30"
    assert draft.working_hours.end == "18:00"


def test_set_window_rejects_malformed_time(config):
    with pytest.raises(ValidationError):
        config.set_window("25:00", "17:00")


def test_save_then_load_round_trips(config, storage, bus):
    config.toggle_day("sunday")
    config.set_window("08:30", "16:30")
    saved = config.save()
    reloaded = AvailabilityConfig(storage, bus).load()
    assert reloaded.model_dump() == saved.model_dump()


def test_save_rejects_start_after_end_and_keeps_draft(config, storage):
    config.set_window("18:00", "09:00")
    with pytest.raises(ValidationError):
        config.save()
    assert storage.get_item(SCHEDULE_KEY) is None
    assert config.is_dirty
    assert config.draft.working_hours.start == "18:00"


def test_failed_save_keeps_previous_schedule_and_dirty_draft(config, storage, bus):
    config.save()
    persisted = storage.get_item(SCHEDULE_KEY)
    received = []
    bus.subscribe(BUSINESS_HOURS_CHANGED, received.append)

    config.toggle_day("monday")
    storage.fail_writes = True
    with pytest.raises(PersistenceError):
        config.save()

    assert storage.get_item(SCHEDULE_KEY) == persisted
    assert config.is_dirty
    assert config.draft.days_open["monday"].open is False
    assert config.schedule.days_open["monday"].open is True
    assert received == []

    storage.fail_writes = False
    saved = config.save()
    assert saved.days_open["monday"].open is False
    assert not config.is_dirty


def test_unexpected_storage_error_is_reported_as_persistence_error(config, monkeypatch):
    def boom(key, value):
        raise OSError("read-only file system")

    monkeypatch.setattr(config.storage, "set_item", boom)
    with pytest.raises(PersistenceError) as exc:
        config.save()
    assert exc.value.key == SCHEDULE_KEY
    assert config.state == "clean"


def test_failed_read_raises_persistence_error(storage, bus, monkeypatch):
    def boom(key):
        raise OSError("permission denied")

    monkeypatch.setattr(storage, "get_item", boom)
    with pytest.raises(PersistenceError):
        AvailabilityConfig(storage, bus).load()


def test_corrupt_stored_schedule_falls_back_to_defaults(storage, bus, caplog):
    storage.set_item(SCHEDULE_KEY, "{not json")
    with caplog.at_level(logging.WARNING):
        schedule = AvailabilityConfig(storage, bus).load()
    assert schedule.model_dump() == default_schedule().model_dump()
    assert "falling back to defaults" in caplog.text


def test_stored_schedule_missing_a_day_falls_back_to_defaults(storage, bus):
    stored = default_schedule().model_dump(by_alias=True)
    del stored["daysOpen"]["sunday"]
    storage.set_item(SCHEDULE_KEY, json.dumps(stored))
    assert AvailabilityConfig(storage, bus).load().model_dump() == default_schedule().model_dump()


def test_load_recomputes_stale_days_off(storage, bus):
    stored = default_schedule().model_dump(by_alias=True)
    stored["workingHours"]["daysOff"] = [0, 1]
    storage.set_item(SCHEDULE_KEY, json.dumps(stored))
    assert AvailabilityConfig(storage, bus).load().working_hours.days_off == [5]


def test_save_notifies_subscribers_with_new_schedule(config):
    received = []
    unsubscribe = config.subscribe(received.append)
    config.toggle_day("friday")
    saved = config.save()
    assert [s.model_dump() for s in received] == [saved.model_dump()]

    unsubscribe()
    config.toggle_day("friday")
    config.save()
    assert len(received) == 1


def test_failing_listener_does_not_block_others(config, caplog):
    received = []

    def broken(_schedule):
        raise RuntimeError("calendar crashed")

    config.subscribe(broken)
    config.subscribe(received.append)
    with caplog.at_level(logging.ERROR):
        config.save()
    assert len(received) == 1
    assert "calendar crashed" in caplog.text


def test_save_sets_refresh_flag(config, storage):
    assert appointment_list_should_refresh(storage) is False
    config.save()
    assert storage.get_item(REFRESH_FLAG_KEY) == "true"
    assert appointment_list_should_refresh(storage) is True
    clear_appointment_list_refresh(storage)
    assert appointment_list_should_refresh(storage) is False


def test_refresh_flag_failure_does_not_fail_save(config, storage, monkeypatch):
    original = storage.set_item

    def set_item(key, value):
        if key == REFRESH_FLAG_KEY:
            raise PersistenceError("quota exceeded", key=key)
        original(key, value)

    monkeypatch.setattr(storage, "set_item", set_item)
    config.toggle_day("friday")
    saved = config.save()
    assert saved.days_open["friday"].open is True
    assert not config.is_dirty


def test_save_with_explicit_draft(config):
    draft = config.draft
    draft.days_open["saturday"].open = False
    saved = config.save(draft)
    assert saved.working_hours.days_off == [5, 6]
    assert config.draft.model_dump() == saved.model_dump()


def test_discard_drops_unsaved_changes(config):
    config.toggle_day("monday")
    config.discard()
    assert not config.is_dirty
    assert config.draft.days_open["monday"].open is True


def test_compute_days_off_is_sunday_first():
    schedule = default_schedule()
    schedule.days_open["sunday"].open = False
    assert compute_days_off(schedule.days_open) == [0, 5]


def test_default_schedule_follows_settings(monkeypatch):
    settings = business_hours_service.get_settings()
    monkeypatch.setattr(settings, "default_days_off", [0, 6])
    monkeypatch.setattr(settings, "default_opening_time", "9:00 AM")
    schedule = default_schedule(settings)
    assert schedule.working_hours.days_off == [0, 6]
    assert schedule.days_open["friday"].open is True
    assert schedule.days_open["monday"].start == "09:00"


def test_toggle_during_save_waits_and_is_kept(storage, bus):
    config = AvailabilityConfig(storage, bus)
    config.load()
    writing = threading.Event()
    release = threading.Event()
    original = storage.set_item

    def slow_set_item(key, value):
        if key == SCHEDULE_KEY:
            writing.set()
            assert release.wait(timeout=5)
        original(key, value)

    storage.set_item = slow_set_item
    saver = threading.Thread(target=config.save)
    saver.start()
    assert writing.wait(timeout=5)

    toggled = []
    toggler = threading.Thread(target=lambda: toggled.append(config.toggle_day("monday")))
    toggler.start()
    toggler.join(timeout=0.2)
    assert toggler.is_alive()

    release.set()
    saver.join(timeout=5)
    toggler.join(timeout=5)

    assert toggled[0].days_open["monday"].open is False
    assert config.is_dirty
    assert config.draft.days_open["monday"].open is False
    assert json.loads(storage.get_item(SCHEDULE_KEY))["daysOpen"]["monday"]["open"] is True


def test_listener_may_read_config_during_notification(config):
    seen = []
    config.subscribe(lambda schedule: seen.append(config.schedule.days_open["friday"].open))
    config.toggle_day("friday")
    config.save()
    assert seen == [True]


def test_stored_schedule_with_reversed_hours_falls_back_to_defaults(storage, bus, caplog):
    stored = default_schedule().model_dump(by_alias=True)
    stored["daysOpen"]["monday"] = {"open": True, "start": "18:00", "end": "09:00"}
    storage.set_item(SCHEDULE_KEY, json.dumps(stored))
    with caplog.at_level(logging.WARNING):
        schedule = AvailabilityConfig(storage, bus).load()
    assert schedule.model_dump() == default_schedule().model_dump()
    assert "before closing time" in caplog.text
