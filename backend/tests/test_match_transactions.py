"""Add / delete / edit transactions over a ladder snapshot."""
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from ladder.services.ladder_state import Snapshot, WinnerRole, empty_snapshot
from ladder.services.match_transactions import (
    MatchEdit,
    MatchInput,
    MatchNotFound,
    PlayerRejected,
    ScoreRejected,
    add_match,
    delete_match,
    edit_match,
)
from ladder.services.score_validator import MSG_IMPOSSIBLE_SET

SEASON_DAY = date(2026, 5, 14)


def _ladder(named=5, capacity=5, player_count=5) -> Snapshot:
    base = empty_snapshot(player_count=player_count, capacity=capacity)
    players = tuple(
        replace(p, name=f"P{p.position}") if p.position <= named else p for p in base.players
    )
    return replace(base, players=players)


def _input(challenger="p5", position=2, winner=WinnerRole.CHALLENGER, score="6-4 6-3", played_on=SEASON_DAY):
    return MatchInput(
        date=played_on,
        position_played_for=position,
        challenger_pid=challenger,
        winner=winner,
        score=score,
        surface="Clay",
    )


def _positions(snapshot):
    return {p.pid: p.position for p in snapshot.players}


# ============================================================================
# Add
# ============================================================================


def test_upset_moves_challenger_and_tallies_stats():
    before = _ladder()
    after, record = add_match(before, _input())

    assert _positions(after) == {"p1": 1, "p5": 2, "p2": 3, "p3": 4, "p4": 5}
    assert record.ladder_move_applied is True
    assert record.challenger_start_pos == 5
    assert record.opponent_start_pos == 2
    assert record.position_played_for == 2
    assert record.score == "6-4 6-3"

    p5 = after.player("p5")
    p2 = after.player("p2")
    assert (p5.matches_played, p5.matches_won, p5.sets_won, p5.sets_lost) == (1, 1, 2, 0)
    assert (p5.games_won, p5.games_lost) == (12, 7)
    assert (p2.matches_played, p2.matches_won, p2.sets_won, p2.sets_lost) == (1, 0, 0, 2)
    assert (p2.games_won, p2.games_lost) == (7, 12)
    assert p5.may == 1
    assert p2.may == 1

    # Bystanders only moved, their counters are untouched
    assert after.player("p3").matches_played == 0
    assert after.matches == (record,)


def test_opponent_win_leaves_positions_alone():
    before = _ladder()
    after, record = add_match(before, _input(winner=WinnerRole.OPPONENT, score="4-6 3-6"))

    assert _positions(after) == _positions(before)
    assert record.ladder_move_applied is False
    assert after.player("p2").matches_won == 1
    assert after.player("p2").sets_won == 2
    assert after.player("p5").matches_won == 0
    assert after.player("p5").matches_played == 1


def test_higher_ranked_challenger_win_does_not_move():
    before = _ladder()
    after, record = add_match(before, _input(challenger="p1", position=4))
    assert record.ladder_move_applied is False
    assert _positions(after) == _positions(before)


def test_add_does_not_mutate_input_snapshot():
    before = _ladder()
    add_match(before, _input())
    assert before.matches == ()
    assert before.player("p5").position == 5
    assert before.player("p5").matches_played == 0


def test_newest_match_is_prepended():
    snap, first = add_match(_ladder(), _input(winner=WinnerRole.OPPONENT))
    snap, second = add_match(snap, _input(challenger="p4", position=3, winner=WinnerRole.OPPONENT))
    assert [m.id for m in snap.matches] == [second.id, first.id]


def test_out_of_season_month_counts_no_bucket():
    after, _ = add_match(_ladder(), _input(played_on=date(2026, 10, 3)))
    for pid in ("p5", "p2"):
        p = after.player(pid)
        assert (p.apr, p.may, p.jun, p.jul, p.aug) == (0, 0, 0, 0, 0)
        assert p.matches_played == 1


def test_each_season_month_hits_its_bucket():
    snap = _ladder()
    for month, bucket in [(4, "apr"), (5, "may"), (6, "jun"), (7, "jul"), (8, "aug")]:
        snap, _ = add_match(snap, _input(challenger="p1", position=2, played_on=date(2026, month, 1)))
        assert getattr(snap.player("p1"), bucket) == 1
        assert getattr(snap.player("p2"), bucket) == 1


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"score": "6-5 6-4"}, MSG_IMPOSSIBLE_SET),
        ({"score": ""}, "Please enter a score (e.g. 6-4 6-3)."),
        ({"challenger": ""}, "Pick a Challenger."),
        ({"challenger": "ghost"}, "Challenger is missing / has no name."),
        ({"challenger": "p2"}, "Challenger can't play themselves."),
        ({"position": 9}, "Invalid position selected."),
    ],
)
def test_rejections_leave_snapshot_unchanged(kwargs, message):
    before = _ladder()
    with pytest.raises((ScoreRejected, PlayerRejected)) as exc_info:
        add_match(before, _input(**kwargs))
    assert exc_info.value.reason == message


def test_unnamed_opponent_rejected():
    snap = _ladder(named=4)
    with pytest.raises(PlayerRejected, match="position #5 has no name yet"):
        add_match(snap, _input(challenger="p1", position=5))


def test_unnamed_challenger_rejected():
    snap = _ladder(named=4)
    with pytest.raises(PlayerRejected, match="Challenger is missing"):
        add_match(snap, _input(challenger="p5", position=2))


def test_inactive_challenger_rejected():
    snap = _ladder(named=6, capacity=6, player_count=5)
    with pytest.raises(PlayerRejected):
        add_match(snap, _input(challenger="p6", position=2))


def test_rejected_score_raises_score_rejected():
    with pytest.raises(ScoreRejected):
        add_match(_ladder(), _input(score="6-4 4-6"))


# ============================================================================
# Delete
# ============================================================================


def test_add_then_delete_restores_snapshot():
    before = _ladder()
    after, record = add_match(before, _input())

    restored = delete_match(after, record.id)
    assert restored == before


def test_delete_non_upset_only_reverses_stats():
    before = _ladder()
    after, record = add_match(before, _input(winner=WinnerRole.OPPONENT, score="6-7 7-5 12-10"))
    assert delete_match(after, record.id) == before


def test_delete_uses_frozen_positions_after_later_moves():
    before = _ladder(named=5)
    snap, first = add_match(before, _input(challenger="p5", position=2))
    # p4 now sits at 5 and beats p1 at 1
    snap, second = add_match(snap, _input(challenger="p4", position=1))
    assert _positions(snap) == {"p4": 1, "p1": 2, "p5": 3, "p2": 4, "p3": 5}

    # Unwind in reverse order, each with its own frozen positions
    snap = delete_match(snap, second.id)
    assert _positions(snap) == {"p1": 1, "p5": 2, "p2": 3, "p3": 4, "p4": 5}
    snap = delete_match(snap, first.id)
    assert snap == before


def test_delete_unknown_match():
    with pytest.raises(MatchNotFound):
        delete_match(_ladder(), "missing")


def test_delete_with_corrupt_score_skips_stats_but_reverses_move(caplog):
    before = _ladder()
    after, record = add_match(before, _input())
    tampered = replace(after, matches=(replace(record, score="six-four"),))

    with caplog.at_level("WARNING"):
        result = delete_match(tampered, record.id)

    assert result.matches == ()
    assert _positions(result) == _positions(before)
    # Stats stay as they were, nothing to reverse against
    assert result.player("p5").matches_won == 1
    assert "skipping stat reversal" in caplog.text


def test_delete_clamps_counters_at_zero():
    before = _ladder()
    after, record = add_match(before, _input(winner=WinnerRole.OPPONENT))
    wiped = replace(
        after,
        players=tuple(replace(p, games_won=0, sets_lost=1) if p.pid == "p2" else p for p in after.players),
    )
    result = delete_match(wiped, record.id)
    assert result.player("p2").games_won == 0
    assert result.player("p2").sets_lost == 0


# ============================================================================
# Edit
# ============================================================================


def _edit(winner=WinnerRole.CHALLENGER, score="6-4 6-3", played_on=SEASON_DAY):
    return MatchEdit(date=played_on, winner=winner, score=score, surface="Indoor")


def test_edit_equals_delete_then_add():
    start = _ladder()
    snap, record = add_match(start, _input(winner=WinnerRole.OPPONENT, score="3-6 2-6"))

    edited, new_record = edit_match(snap, record.id, _edit(score="7-5 6-7 10-6", played_on=date(2026, 7, 2)))

    removed = delete_match(snap, record.id)
    readded, expected = add_match(
        removed,
        MatchInput(
            date=date(2026, 7, 2),
            position_played_for=2,
            challenger_pid="p5",
            winner=WinnerRole.CHALLENGER,
            score="7-5 6-7 10-6",
            surface="Indoor",
        ),
        match_id=record.id,
        recorded_at=record.recorded_at,
    )
    assert edited == readded
    assert new_record == expected
    assert new_record.id == record.id
    assert new_record.ladder_move_applied is True


def test_edit_upset_to_opponent_win_undoes_move():
    start = _ladder()
    snap, record = add_match(start, _input())
    edited, new_record = edit_match(snap, record.id, _edit(winner=WinnerRole.OPPONENT, score="4-6 4-6"))

    assert _positions(edited) == _positions(start)
    assert new_record.ladder_move_applied is False
    assert new_record.challenger_start_pos == 5
    assert edited.player("p2").matches_won == 1
    assert edited.player("p5").matches_won == 0
    assert edited.player("p5").matches_played == 1


def test_edit_moves_month_bucket():
    snap, record = add_match(_ladder(), _input(played_on=date(2026, 4, 20)))
    edited, _ = edit_match(snap, record.id, _edit(played_on=date(2026, 8, 2)))
    assert edited.player("p5").apr == 0
    assert edited.player("p5").aug == 1


def test_edit_with_bad_score_changes_nothing():
    snap, record = add_match(_ladder(), _input())
    with pytest.raises(ScoreRejected) as exc_info:
        edit_match(snap, record.id, _edit(score="6-5 6-4"))
    assert exc_info.value.reason == MSG_IMPOSSIBLE_SET


def test_edit_unknown_match():
    with pytest.raises(MatchNotFound):
        edit_match(_ladder(), "missing", _edit())


def test_edit_keeps_log_position_and_recorded_at():
    nine = datetime(2026, 5, 14, 9, tzinfo=timezone.utc)
    ten = datetime(2026, 5, 14, 10, tzinfo=timezone.utc)
    snap, first = add_match(_ladder(), _input(winner=WinnerRole.OPPONENT), recorded_at=nine)
    snap, second = add_match(
        snap, _input(challenger="p4", position=3, winner=WinnerRole.OPPONENT), recorded_at=ten
    )
    edited, record = edit_match(snap, first.id, _edit(winner=WinnerRole.OPPONENT, score="2-6 2-6"))
    assert [m.id for m in edited.matches] == [second.id, first.id]
    assert record.recorded_at == nine


def test_add_stores_naive_recorded_at_as_utc():
    _, record = add_match(_ladder(), _input(), recorded_at=datetime(2026, 5, 14, 9))
    assert record.recorded_at == datetime(2026, 5, 14, 9, tzinfo=timezone.utc)


def test_edit_with_corrupt_stored_score_still_reverses_move(caplog):
    before = _ladder()
    after, record = add_match(before, _input())
    tampered = replace(after, matches=(replace(record, score="six-four"),))

    with caplog.at_level("WARNING"):
        edited, new_record = edit_match(tampered, record.id, _edit(winner=WinnerRole.OPPONENT, score="4-6 4-6"))

    assert "skipping stat reversal" in caplog.text
    assert _positions(edited) == _positions(before)
    assert new_record.ladder_move_applied is False
    assert new_record.score == "4-6 4-6"
    # The original result was never taken off, the new one is added on top
    assert edited.player("p5").matches_played == 2
    assert edited.player("p5").matches_won == 1
    assert edited.player("p2").matches_played == 2
    assert edited.player("p2").matches_won == 1


def test_edit_allows_renamed_or_hidden_players():
    snap, record = add_match(_ladder(), _input(winner=WinnerRole.OPPONENT, score="2-6 2-6"))
    renamed = tuple(replace(p, name="") if p.pid == "p5" else p for p in snap.players)
    snap = replace(snap, players=renamed, player_count=3)

    edited, new_record = edit_match(snap, record.id, _edit(winner=WinnerRole.OPPONENT, score="3-6 3-6"))

    assert new_record.challenger_pid == "p5"
    assert edited.player("p2").games_won == 12
    assert edited.player("p5").games_won == 6
