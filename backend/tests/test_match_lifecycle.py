"""Check-in → start → finish, against both store implementations."""
import threading
from datetime import timedelta

import pytest

from tournament_tracker.errors import (
    InvalidPlayerRegistration,
    InvalidResult,
    InvalidWinner,
    MatchAlreadyCompleted,
    MatchAlreadyStarted,
    MatchNotFound,
    MatchNotStarted,
    PlayerAlreadyRegistered,
    PlayerMissing,
    StoreError,
)
from tournament_tracker.persistence.memory_store import InMemoryStore
from tournament_tracker.services.court_allocator import CourtAllocator
from tournament_tracker.services.match_lifecycle import MatchLifecycle
from tournament_tracker.services.match_views import MatchResultPayload
from tournament_tracker.utils.clock import utc_now


@pytest.fixture
def lifecycle(tracker):
    return MatchLifecycle(tracker.store)


def check_in_both(lifecycle, match_id, p1=1, p2=2):
    lifecycle.register_player(match_id, p1, "Svante")
    return lifecycle.register_player(match_id, p2, "Svante")


# ── register_player ─────────────────────────────────────────────────────


def test_first_check_in_does_not_start(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    match_id = tracker.add_match(tid, 1, 2)

    outcome = lifecycle.register_player(match_id, 1, "Svante")

    assert outcome.registration.player_id == 1
    assert outcome.registration.match_id == match_id
    assert outcome.registration.registered_by == "Svante"
    assert outcome.match is None
    assert tracker.store.get_match_court(tid, match_id) is None
    assert tracker.store.get_queue_placement(tid, match_id) is None


def test_second_check_in_starts_on_free_court(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    match_id = tracker.add_match(tid, 1, 2)

    outcome = check_in_both(lifecycle, match_id)

    assert outcome.match is not None
    assert outcome.match.court == "Court-1"
    assert outcome.match.player_one_arrived and outcome.match.player_two_arrived
    assert outcome.start_error is None
    assert tracker.store.get_match_court(tid, match_id) == "Court-1"


def test_register_to_missing_match(roster, lifecycle):
    with pytest.raises(MatchNotFound):
        lifecycle.register_player(999, 1, "Svante")


def test_register_player_not_on_roster(tracker, roster, lifecycle):
    match_id = tracker.add_match(roster["tournament_id"], 1, 2)
    with pytest.raises(InvalidPlayerRegistration):
        lifecycle.register_player(match_id, 1337, "Svante")
    assert tracker.store.get_registered_players(match_id) == []


def test_register_same_player_twice(tracker, roster, lifecycle):
    match_id = tracker.add_match(roster["tournament_id"], 1, 2)
    lifecycle.register_player(match_id, 1, "Svante")

    with pytest.raises(PlayerAlreadyRegistered):
        lifecycle.register_player(match_id, 1, "Svante")
    assert len(tracker.store.get_registered_players(match_id)) == 1


def test_failed_start_keeps_registration(tracker, roster, lifecycle):
    """Player 3 has no player row: the check-in is stored, the start reports PlayerNotFound."""
    tid = roster["tournament_id"]
    match_id = tracker.add_match(tid, 1, 3)
    lifecycle.register_player(match_id, 1, "Svante")

    outcome = lifecycle.register_player(match_id, 3, "Svante")

    assert outcome.match is None
    assert outcome.start_error == "PlayerNotFound"
    assert {r.player_id for r in tracker.store.get_registered_players(match_id)} == {1, 3}


# ── start_match ─────────────────────────────────────────────────────────


def test_start_requires_both_players(tracker, roster, lifecycle):
    match_id = tracker.add_match(roster["tournament_id"], 1, 2)
    with pytest.raises(PlayerMissing):
        lifecycle.start_match(match_id)

    lifecycle.register_player(match_id, 2, "Svante")
    with pytest.raises(PlayerMissing):
        lifecycle.start_match(match_id)


def test_start_missing_match(roster, lifecycle):
    with pytest.raises(MatchNotFound):
        lifecycle.start_match(999)


def test_start_twice_on_court(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    match_id = tracker.add_match(tid, 1, 2)
    check_in_both(lifecycle, match_id)

    with pytest.raises(MatchAlreadyStarted):
        lifecycle.start_match(match_id)


def test_start_twice_while_queued(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    match_id = tracker.add_match(tid, 1, 2)
    check_in_both(lifecycle, match_id)

    with pytest.raises(MatchAlreadyStarted):
        lifecycle.start_match(match_id)
    assert tracker.store.get_queue_placement(tid, match_id) == 1


def test_start_view_carries_court_and_observed_start_time(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    match_id = tracker.add_match(tid, 1, 2)
    scheduled_start = tracker.store.get_match(match_id).start_time

    view = check_in_both(lifecycle, match_id).match

    assert view.court == "Court-1"
    assert view.start_time < scheduled_start  # observed now, scheduled two hours ahead
    assert view.winner is None and view.result is None


def test_queue_placement_labels_without_courts(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    matches = [tracker.add_match(tid, 1, 2) for _ in range(3)]

    labels = [check_in_both(lifecycle, m).match.court for m in matches]

    assert labels == ["first in queue", "second in queue", "queue position: 3"]
    for m in matches:
        assert tracker.store.get_match_court(tid, m) is None


# ── finish_match ────────────────────────────────────────────────────────


@pytest.fixture
def one_court_two_matches(tracker, roster, lifecycle):
    """Court-1 taken by M1, M2 first in queue."""
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    m1 = tracker.add_match(tid, 1, 2)
    m2 = tracker.add_match(tid, 1, 2, category="HS")
    assert check_in_both(lifecycle, m1).match.court == "Court-1"
    assert check_in_both(lifecycle, m2).match.court == "first in queue"
    return tid, m1, m2


def test_finish_promotes_queue_head(tracker, lifecycle, one_court_two_matches):
    tid, m1, m2 = one_court_two_matches

    view = lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="6-3 6-4"))

    assert view.id == m1
    assert view.winner == 1
    assert view.result == "6-3 6-4"
    assert view.court is None
    assert tracker.store.get_match_court(tid, m1) is None
    assert tracker.store.get_match_court(tid, m2) == "Court-1"
    assert tracker.store.get_queue_placement(tid, m2) is None


def test_finish_without_queue_frees_court(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    m1 = tracker.add_match(tid, 1, 2)
    check_in_both(lifecycle, m1)

    lifecycle.finish_match(m1, MatchResultPayload(winner=2, result="2-6 6-7(5)"))

    assert tracker.store.get_match_court(tid, m1) is None
    assert tracker.store.try_assign_free_court(tid, tracker.add_match(tid, 1, 2)) == "Court-1"


def test_finish_is_not_idempotent(tracker, lifecycle, one_court_two_matches):
    tid, m1, m2 = one_court_two_matches
    lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="6-3 6-4"))

    with pytest.raises(MatchAlreadyCompleted):
        lifecycle.finish_match(m1, MatchResultPayload(winner=2, result="6-0 6-0"))

    assert tracker.store.get_match_result(m1).winner_id == 1
    assert tracker.store.get_match_court(tid, m2) == "Court-1"


def test_finish_queued_match_is_not_started(tracker, lifecycle, one_court_two_matches):
    tid, _, m2 = one_court_two_matches
    with pytest.raises(MatchNotStarted):
        lifecycle.finish_match(m2, MatchResultPayload(winner=1, result="6-3 6-4"))
    assert tracker.store.get_match_result(m2) is None


def test_finish_rejects_bad_winner_and_score_without_side_effects(tracker, lifecycle, one_court_two_matches):
    tid, m1, m2 = one_court_two_matches

    with pytest.raises(InvalidWinner):
        lifecycle.finish_match(m1, MatchResultPayload(winner=42, result="6-3 6-4"))
    with pytest.raises(InvalidResult):
        lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="2-3-4-5 6-2(2)"))

    assert tracker.store.get_match_result(m1) is None
    assert tracker.store.get_match_court(tid, m1) == "Court-1"
    assert tracker.store.get_queue_placement(tid, m2) == 1


def test_finish_missing_match(roster, lifecycle):
    with pytest.raises(MatchNotFound):
        lifecycle.finish_match(999, MatchResultPayload(winner=1, result="6-3 6-4"))


def test_failed_promotion_rolls_back_result(tracker, lifecycle, one_court_two_matches, monkeypatch):
    """If the popped match cannot be seated, nothing of the finish survives."""
    tid, m1, m2 = one_court_two_matches
    monkeypatch.setattr(CourtAllocator, "try_assign_free_court", lambda self, t, m: None)

    with pytest.raises(StoreError):
        lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="6-3 6-4"))

    assert tracker.store.get_match_result(m1) is None
    assert tracker.store.get_match_court(tid, m1) == "Court-1"
    assert tracker.store.get_queue_placement(tid, m2) == 1


def test_promotion_follows_arrival_order(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    playing = tracker.add_match(tid, 1, 2)
    first, second = tracker.add_match(tid, 1, 2), tracker.add_match(tid, 1, 2)
    check_in_both(lifecycle, playing)
    # second checks in before first does
    check_in_both(lifecycle, second)
    check_in_both(lifecycle, first)

    lifecycle.finish_match(playing, MatchResultPayload(winner=1, result="6-0"))

    assert tracker.store.get_match_court(tid, second) == "Court-1"
    assert tracker.store.get_queue_placement(tid, first) == 1


def test_finished_match_cannot_restart(tracker, roster, lifecycle):
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    m1 = tracker.add_match(tid, 1, 2)
    check_in_both(lifecycle, m1)
    lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="6-0"))

    with pytest.raises(MatchAlreadyCompleted):
        lifecycle.start_match(m1)
    assert tracker.store.get_match_court(tid, m1) is None


# ── concurrent starts ───────────────────────────────────────────────────


def test_racing_start_of_seated_match_is_refused(tracker, roster, lifecycle, monkeypatch):
    """A second start whose state checks ran before the first one took the only court."""
    tid = roster["tournament_id"]
    tracker.add_court(tid, "Court-1")
    m1 = tracker.add_match(tid, 1, 2)
    assert check_in_both(lifecycle, m1).match.court == "Court-1"

    # The second caller's reads still show an unstarted match
    monkeypatch.setattr(tracker.store, "get_match_court", lambda t, m: None)
    monkeypatch.setattr(tracker.store, "get_queue_placement", lambda t, m: None)
    with pytest.raises(MatchAlreadyStarted):
        lifecycle.start_match(m1)
    monkeypatch.undo()

    assert tracker.store.get_match_court(tid, m1) == "Court-1"
    assert tracker.store.get_queue_placement(tid, m1) is None

    lifecycle.finish_match(m1, MatchResultPayload(winner=1, result="6-0"))

    assert tracker.store.get_match_court(tid, m1) is None
    assert tracker.store.get_queue_placement(tid, m1) is None
    assert tracker.store.try_assign_free_court(tid, tracker.add_match(tid, 1, 2)) == "Court-1"


def test_racing_start_of_queued_match_is_refused(tracker, roster, lifecycle, monkeypatch):
    tid = roster["tournament_id"]
    m1 = tracker.add_match(tid, 1, 2)
    assert check_in_both(lifecycle, m1).match.court == "first in queue"

    monkeypatch.setattr(tracker.store, "get_match_court", lambda t, m: None)
    monkeypatch.setattr(tracker.store, "get_queue_placement", lambda t, m: None)
    with pytest.raises(MatchAlreadyStarted):
        lifecycle.start_match(m1)
    monkeypatch.undo()

    assert tracker.store.get_queue_placement(tid, m1) == 1
    assert tracker.store.pop_queue(tid) == m1
    assert tracker.store.pop_queue(tid) is None


def test_concurrent_check_ins_start_each_match_once():
    store = InMemoryStore()
    tid = store.add_tournament().id
    store.add_player(1, "Göte Svensson")
    store.add_player(2, "Sture Svensson")
    store.add_court(tid, "Court-1")
    start_time = utc_now() + timedelta(hours=2)
    matches = [store.add_match(tid, 1, 2, start_time=start_time).id for _ in range(6)]
    lifecycle = MatchLifecycle(store)

    barrier = threading.Barrier(2 * len(matches))
    errors = []

    def check_in(match_id, player_id):
        barrier.wait()
        try:
            lifecycle.register_player(match_id, player_id, "Svante")
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=check_in, args=(m, p)) for m in matches for p in (1, 2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    seated = [m for m in matches if store.get_match_court(tid, m) is not None]
    queued = [m for m in matches if store.get_queue_placement(tid, m) is not None]
    assert len(seated) == 1
    assert not set(seated) & set(queued)
    assert sorted(seated + queued) == sorted(matches)
    assert sorted(store.get_queue_placement(tid, m) for m in queued) == [1, 2, 3, 4, 5]
