import threading
from datetime import date, time

import pytest

from conftest import CANDIDATE_A, CANDIDATE_B, INTERVIEWER
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    AlreadyClaimedError,
    DurationTooShortError,
    InvalidWindowError,
    NotFoundError,
    PastDateError,
)


def test_publish_creates_free_slot(service, now, recorder):
    slot = service.publish_slot(INTERVIEWER, "2024-06-10", "09:00", "09:45", now)

    assert slot.is_free
    assert slot.interviewer_id == INTERVIEWER
    assert slot.date == date(2024, 6, 10)
    assert (slot.start_time, slot.end_time) == (time(9, 0), time(9, 45))
    assert [s.id for s in service.list_free_slots(INTERVIEWER)] == [slot.id]
    assert recorder.names() == ["SlotPublished"]


@pytest.mark.parametrize("start,end", [("10:00", "09:00"), ("09:00", "09:00")])
def test_publish_rejects_inverted_window(service, now, start, end):
    with pytest.raises(InvalidWindowError):
        service.publish_slot(INTERVIEWER, "2024-06-10", start, end, now)
    assert service.list_free_slots(INTERVIEWER) == []


def test_publish_rejects_short_window(service, now):
    with pytest.raises(DurationTooShortError):
        service.publish_slot(INTERVIEWER, "2024-06-10", "09:00", "09:20", now)


def test_publish_rejects_past_date(service, now):
    with pytest.raises(PastDateError) as exc_info:
        service.publish_slot(INTERVIEWER, "2024-06-08", "09:00", "10:00", now)
    assert exc_info.value.field == "date"


def test_publish_many_is_all_or_nothing(service, now):
    windows = [
        ("2024-06-10", "09:00", "10:00"),
        ("2024-06-11", "11:00", "10:00"),
    ]
    with pytest.raises(InvalidWindowError):
        service.publish_slots(INTERVIEWER, windows, now)
    assert service.list_free_slots(INTERVIEWER) == []


def test_publish_rejects_start_already_past_today(service, now):
    with pytest.raises(PastDateError) as exc_info:
        service.publish_slot(INTERVIEWER, now.date(), "08:00", "09:00", now)
    assert exc_info.value.field == "start_time"
    assert service.list_slots(INTERVIEWER) == []


def test_publish_later_today_is_accepted(service, now):
    slot = service.publish_slot(INTERVIEWER, now.date(), "10:00", "11:00", now)
    assert slot.is_free


@pytest.mark.parametrize("start,end", [("09:30", "10:30"), ("08:30", "09:15"), ("09:15", "09:30"), ("08:00", "11:00")])
def test_publish_rejects_overlap_with_free_slot(service, now, start, end):
    existing = service.publish_slot(INTERVIEWER, "2024-06-10", "09:00", "10:00", now)

    with pytest.raises(InvalidWindowError) as exc_info:
        service.publish_slot(INTERVIEWER, "2024-06-10", start, end, now)
    assert exc_info.value.field == "start_time"
    assert [s.id for s in service.list_slots(INTERVIEWER)] == [existing.id]


def test_publish_rejects_overlap_with_claimed_slot(service, slot, now):
    service.catalog.claim(slot.id, CANDIDATE_A)

    with pytest.raises(InvalidWindowError) as exc_info:
        service.publish_slot(INTERVIEWER, "2024-06-10", "09:30", "10:15", now)
    assert exc_info.value.field == "start_time"
    assert len(service.list_slots(INTERVIEWER)) == 1


def test_publish_many_rejects_overlap_within_batch(service, now):
    windows = [
        ("2024-06-10", "09:00", "10:00"),
        ("2024-06-10", "09:30", "10:30"),
    ]
    with pytest.raises(InvalidWindowError) as exc_info:
        service.publish_slots(INTERVIEWER, windows, now)
    assert exc_info.value.field == "start_time"
    assert service.list_slots(INTERVIEWER) == []


def test_publish_many_rejects_batch_overlapping_existing_slot(service, slot, now):
    windows = [
        ("2024-06-11", "09:00", "10:00"),
        ("2024-06-10", "09:15", "10:00"),
    ]
    with pytest.raises(InvalidWindowError):
        service.publish_slots(INTERVIEWER, windows, now)
    assert [s.id for s in service.list_slots(INTERVIEWER)] == [slot.id]


def test_adjacent_and_other_interviewer_windows_do_not_overlap(service, slot, now):
    service.publish_slot(INTERVIEWER, "2024-06-10", "09:45", "10:30", now)
    service.publish_slot(INTERVIEWER, "2024-06-10", "08:15", "09:00", now)
    service.publish_slot("int-2", "2024-06-10", "09:00", "09:45", now)

    assert len(service.list_slots(INTERVIEWER)) == 3
    assert len(service.list_slots("int-2")) == 1

def test_free_slots_are_ordered_and_scoped_to_interviewer(service, now):
    service.publish_slot(INTERVIEWER, "2024-06-11", "09:00", "10:00", now)
    service.publish_slot(INTERVIEWER, "2024-06-10", "14:00", "15:00", now)
    service.publish_slot(INTERVIEWER, "2024-06-10", "09:00", "10:00", now)
    service.publish_slot("int-2", "2024-06-10", "08:00", "09:00", now)

    slots = service.list_free_slots(INTERVIEWER)
    assert [(s.date.day, s.start_time.hour) for s in slots] == [(10, 9), (10, 14), (11, 9)]


def test_publish_day_splits_into_back_to_back_slots(service, now):
    slots = service.publish_day_slots(INTERVIEWER, "2024-06-10", "09:00", "11:00", 45, 45, now)

    assert [(s.start_time, s.end_time) for s in slots] == [
        (time(9, 0), time(9, 45)),
        (time(9, 45), time(10, 30)),
    ]


def test_publish_day_with_gaps(service, now):
    slots = service.publish_day_slots(INTERVIEWER, "2024-06-10", "09:00", "12:00", 30, 60, now)
    assert [s.start_time.hour for s in slots] == [9, 10, 11]


def test_publish_day_rejects_day_too_short_for_duration(service, now):
    with pytest.raises(InvalidWindowError):
        service.publish_day_slots(INTERVIEWER, "2024-06-10", "09:00", "09:30", 45, 45, now)


def test_publish_day_today_skips_windows_already_started(service, now):
    slots = service.publish_day_slots(INTERVIEWER, now.date(), "08:00", "13:00", 60, 60, now)
    assert [s.start_time.hour for s in slots] == [10, 11, 12]


def test_publish_day_rejects_interval_shorter_than_duration(service, now):
    with pytest.raises(InvalidWindowError) as exc_info:
        service.publish_day_slots(INTERVIEWER, "2024-06-10", "09:00", "12:00", 60, 30, now)
    assert exc_info.value.field == "interval_minutes"
    assert service.list_free_slots(INTERVIEWER) == []


def test_withdraw_free_slot(service, slot, now, recorder):
    service.withdraw_slot(slot.id, INTERVIEWER, now)

    assert service.list_free_slots(INTERVIEWER) == []
    with pytest.raises(NotFoundError):
        service.get_slot(slot.id)
    assert "SlotWithdrawn" in recorder.names()


def test_withdraw_unknown_slot(service):
    with pytest.raises(NotFoundError):
        service.withdraw_slot("missing")


def test_withdraw_claimed_slot_is_refused(service, slot):
    service.catalog.claim(slot.id, CANDIDATE_A)
    with pytest.raises(AlreadyClaimedError):
        service.withdraw_slot(slot.id, INTERVIEWER)
    assert service.get_slot(slot.id).claimed_by == CANDIDATE_A


def test_withdraw_by_other_interviewer_is_refused(service, slot):
    with pytest.raises(ActorNotAllowedError):
        service.withdraw_slot(slot.id, "int-2")
    assert service.get_slot(slot.id).is_free


def test_claim_is_exclusive(service, slot):
    claimed = service.catalog.claim(slot.id, CANDIDATE_A)
    assert claimed.claimed_by == CANDIDATE_A

    with pytest.raises(AlreadyClaimedError):
        service.catalog.claim(slot.id, CANDIDATE_B)
    assert service.get_slot(slot.id).claimed_by == CANDIDATE_A
    assert service.list_free_slots(INTERVIEWER) == []


def test_claim_unknown_slot(service):
    with pytest.raises(NotFoundError):
        service.catalog.claim("missing", CANDIDATE_A)


def test_release_returns_slot_to_free_list(service, slot):
    service.catalog.claim(slot.id, CANDIDATE_A)
    assert service.catalog.release(slot.id)

    assert service.get_slot(slot.id).is_free
    assert service.catalog.claim(slot.id, CANDIDATE_B).claimed_by == CANDIDATE_B


def test_release_of_free_slot_is_a_no_op(service, slot):
    assert not service.catalog.release(slot.id)


def test_returned_slots_are_copies(service, slot):
    slot.claimed_by = "intruder"
    assert service.get_slot(slot.id).is_free


def test_concurrent_claims_have_exactly_one_winner(service, slot):
    contenders = 20
    barrier = threading.Barrier(contenders)
    winners, losers = [], []
    lock = threading.Lock()

    def attempt(candidate_id):
        barrier.wait()
        try:
            service.catalog.claim(slot.id, candidate_id)
        except AlreadyClaimedError:
            with lock:
                losers.append(candidate_id)
        else:
            with lock:
                winners.append(candidate_id)

    threads = [threading.Thread(target=attempt, args=(f"cand-{i}",)) for i in range(contenders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(losers) == contenders - 1
    assert service.get_slot(slot.id).claimed_by == winners[0]
