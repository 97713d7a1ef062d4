"""Tests for the per-user cycle log."""
from __future__ import annotations

from datetime import date

import pytest

from carecircle.errors import AuthorizationError, ConflictError, NotFoundError
from carecircle.models import FlowIntensity, LogEntry, Mood, Symptom
from carecircle.util.sanitization import clean_text


@pytest.fixture
def cycle_log(services):
    return services.cycle_log


def test_create_stores_entry(cycle_log, users):
    entry = cycle_log.create(
        users["alice"],
        date(2024, 1, 1),
        symptoms=[Symptom.HEADACHE, Symptom.CRAMPS, Symptom.CRAMPS],
        mood=Mood.TIRED,
        flow=FlowIntensity.HEAVY,
        notes="Rough day",
    )
    assert entry.id is not None
    assert entry.owner_id == users["alice"]
    assert entry.symptoms == ["cramps", "headache"]
    assert entry.symptom_set == {Symptom.CRAMPS, Symptom.HEADACHE}
    assert entry.mood is Mood.TIRED
    assert entry.flow is FlowIntensity.HEAVY
    assert entry.notes == "Rough day"


def test_second_entry_for_same_date_conflicts(cycle_log, users):
    cycle_log.create(users["alice"], date(2024, 1, 1))
    with pytest.raises(ConflictError):
        cycle_log.create(users["alice"], date(2024, 1, 1), flow=FlowIntensity.LIGHT)
    assert LogEntry.query.count() == 1


def test_racing_create_for_same_date_conflicts(cycle_log, users, monkeypatch):
    alice = users["alice"]
    first = cycle_log.create(alice, date(2024, 1, 1), mood=Mood.CALM)
    # Skip the pre-check so the insert reaches the owner/date constraint.
    monkeypatch.setattr(cycle_log, "get_by_date", lambda owner_id, log_date: None)

    with pytest.raises(ConflictError):
        cycle_log.create(alice, date(2024, 1, 1), flow=FlowIntensity.HEAVY)

    assert [entry.id for entry in cycle_log.get_entries(alice)] == [first.id]
    assert cycle_log.get(first.id).mood is Mood.CALM
    assert cycle_log.create(alice, date(2024, 1, 2)).id != first.id


def test_same_date_allowed_for_different_owners(cycle_log, users):
    cycle_log.create(users["alice"], date(2024, 1, 1))
    cycle_log.create(users["bob"], date(2024, 1, 1))
    assert LogEntry.query.count() == 2


def test_update_replaces_mutable_fields_only(cycle_log, users):
    entry = cycle_log.create(
        users["alice"], date(2024, 1, 1), [Symptom.ACNE], Mood.SAD, FlowIntensity.LIGHT, "x"
    )

    updated = cycle_log.update(entry.id, [Symptom.NAUSEA], None, FlowIntensity.MEDIUM, "better")

    assert updated.owner_id == users["alice"]
    assert updated.date == date(2024, 1, 1)
    assert updated.symptoms == ["nausea"]
    assert updated.mood is None
    assert updated.flow is FlowIntensity.MEDIUM
    assert updated.notes == "better"


def test_update_does_not_accept_date_or_owner(cycle_log, users):
    entry = cycle_log.create(users["alice"], date(2024, 1, 1))
    with pytest.raises(TypeError):
        cycle_log.update(entry.id, date=date(2024, 2, 1))
    with pytest.raises(TypeError):
        cycle_log.update(entry.id, owner_id=users["bob"])


def test_update_missing_entry_raises(cycle_log):
    with pytest.raises(NotFoundError):
        cycle_log.update(999, [], None, None, "")


def test_get_by_date(cycle_log, users):
    entry = cycle_log.create(users["alice"], date(2024, 1, 5), mood=Mood.CALM)
    assert cycle_log.get_by_date(users["alice"], date(2024, 1, 5)).id == entry.id
    assert cycle_log.get_by_date(users["bob"], date(2024, 1, 5)) is None
    assert cycle_log.get_by_date(users["alice"], date(2024, 1, 6)) is None


def test_assert_author_is_user(cycle_log, users):
    entry = cycle_log.create(users["alice"], date(2024, 1, 1))
    cycle_log.assert_author_is_user(entry.id, users["alice"])
    with pytest.raises(AuthorizationError):
        cycle_log.assert_author_is_user(entry.id, users["bob"])
    with pytest.raises(NotFoundError):
        cycle_log.assert_author_is_user(999, users["alice"])


def test_delete(cycle_log, users):
    entry = cycle_log.create(users["alice"], date(2024, 1, 1))
    cycle_log.delete(entry.id)
    assert cycle_log.get_by_date(users["alice"], date(2024, 1, 1)) is None
    with pytest.raises(NotFoundError):
        cycle_log.delete(entry.id)


def test_get_entries_is_sorted_and_bounded(cycle_log, users):
    for day in (10, 2, 20, 5):
        cycle_log.create(users["alice"], date(2024, 3, day))
    cycle_log.create(users["bob"], date(2024, 3, 3))

    all_days = [e.date.day for e in cycle_log.get_entries(users["alice"])]
    assert all_days == [2, 5, 10, 20]

    bounded = cycle_log.get_entries(users["alice"], date(2024, 3, 5), date(2024, 3, 10))
    assert [e.date.day for e in bounded] == [5, 10]


def test_get_flow_days_skips_entries_without_flow(cycle_log, users):
    cycle_log.create(users["alice"], date(2024, 1, 2), flow=FlowIntensity.LIGHT)
    cycle_log.create(users["alice"], date(2024, 1, 1), flow=FlowIntensity.SPOTTING)
    cycle_log.create(users["alice"], date(2024, 1, 15), mood=Mood.HAPPY)
    assert cycle_log.get_flow_days(users["alice"]) == [date(2024, 1, 1), date(2024, 1, 2)]


def test_delete_all_for_owner(cycle_log, users):
    cycle_log.create(users["alice"], date(2024, 1, 1))
    cycle_log.create(users["alice"], date(2024, 1, 2))
    cycle_log.create(users["bob"], date(2024, 1, 1))

    assert cycle_log.delete_all_for(users["alice"]) == 2
    assert cycle_log.get_entries(users["alice"]) == []
    assert len(cycle_log.get_entries(users["bob"])) == 1


def test_notes_are_sanitised(cycle_log, users):
    entry = cycle_log.create(
        users["alice"], date(2024, 1, 1), notes="  <b>cramps</b>   all   day <script>x</script> "
    )
    assert entry.notes == "cramps all day x"


def test_clean_text_limits_length():
    assert clean_text(None) == ""
    assert clean_text("abcdef", max_length=3) == "abc"
    assert clean_text("ab   <i>cd</i>") == "ab cd"
