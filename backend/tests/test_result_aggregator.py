"""Set totals and applying/reversing a match's counter contribution."""
from ladder.services.ladder_state import Player
from ladder.services.result_aggregator import (
    MatchTotals,
    aggregate_sets,
    apply_delta,
    delta_for_side,
)


def test_aggregate_counts_sets_and_games():
    totals = aggregate_sets([(6, 4), (3, 6), (10, 7)])
    assert totals == MatchTotals(sets_won_a=2, sets_won_b=1, games_won_a=19, games_won_b=17)


def test_delta_for_side_mirrors_totals():
    totals = aggregate_sets([(6, 4), (6, 3)])
    a = delta_for_side(totals, is_a=True, won=True)
    b = delta_for_side(totals, is_a=False, won=False)
    assert (a.sets_won, a.sets_lost, a.games_won, a.games_lost) == (2, 0, 12, 7)
    assert (b.sets_won, b.sets_lost, b.games_won, b.games_lost) == (0, 2, 7, 12)


def test_apply_then_remove_restores_player():
    player = Player(pid="p1", position=1, name="Ann", matches_played=3, sets_won=4, may=2)
    delta = delta_for_side(aggregate_sets([(6, 4), (6, 3)]), is_a=True, won=True, bucket="may")

    added = apply_delta(player, delta)
    assert added.matches_played == 4
    assert added.matches_won == 1
    assert added.sets_won == 6
    assert added.games_won == 12
    assert added.may == 3

    assert apply_delta(added, delta, direction=-1) == player


def test_removal_clamps_at_zero():
    player = Player(pid="p1", position=1, name="Ann", matches_played=0, games_won=5)
    delta = delta_for_side(aggregate_sets([(6, 4), (6, 3)]), is_a=True, won=True, bucket="jun")

    removed = apply_delta(player, delta, direction=-1)
    assert removed.matches_played == 0
    assert removed.matches_won == 0
    assert removed.sets_won == 0
    assert removed.games_won == 0
    assert removed.jun == 0


def test_no_bucket_leaves_months_untouched():
    player = Player(pid="p1", position=1)
    delta = delta_for_side(aggregate_sets([(6, 4), (6, 3)]), is_a=False, won=False)
    added = apply_delta(player, delta)
    assert (added.apr, added.may, added.jun, added.jul, added.aug) == (0, 0, 0, 0, 0)
    assert added.matches_played == 1
    assert added.matches_won == 0
