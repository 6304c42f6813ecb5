# golden_boot/sequencer.py
"""
Turn sequencing for drafts and transfer windows.

Every caller (draft picks, drops/pickups, turn advances, mark-done) goes
through advance_turn so that snake reversal and window exhaustion are
computed in exactly one place.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from golden_boot.errors import TeamNotInOrderError, ValidationError


@dataclass(frozen=True)
class TurnAdvance:
    """Outcome of advancing one turn."""
    completed: bool
    team: Optional[str]
    round: int
    overall_pick: int
    skipped: Tuple[str, ...] = ()


def validate_order(order: Sequence[str]) -> None:
    if not order:
        raise ValidationError("Draft order is empty.")
    if len(set(order)) != len(order):
        raise ValidationError("Draft order contains duplicate teams.")


def round_order(order: Sequence[str], round_number: int, snake: bool) -> List[str]:
    """Pick order for a round: forward on odd rounds, reversed on even rounds in snake mode."""
    if snake and round_number % 2 == 0:
        return list(reversed(order))
    return list(order)


def total_picks(order: Sequence[str], max_rounds: int) -> int:
    return len(order) * max_rounds


def overall_pick(order: Sequence[str], team: str, round_number: int, snake: bool) -> int:
    """1-based pick number of `team` in `round_number` across the whole draft."""
    current = round_order(order, round_number, snake)
    if team not in current:
        raise TeamNotInOrderError(team)
    return (round_number - 1) * len(order) + current.index(team) + 1


def turn_for_pick(order: Sequence[str], pick: int, snake: bool) -> Tuple[str, int]:
    """Team and round that own a 1-based overall pick."""
    if pick < 1:
        raise ValidationError(f"Pick must be at least 1, got {pick}.")
    team_count = len(order)
    round_number = (pick - 1) // team_count + 1
    position = (pick - 1) % team_count
    return round_order(order, round_number, snake)[position], round_number


def advance_turn(
    order: Sequence[str],
    current_team: Optional[str],
    current_round: int,
    max_rounds: int,
    snake: bool = False,
    finished_teams: Iterable[str] = (),
) -> TurnAdvance:
    """Compute who acts after `current_team`.

    Teams in `finished_teams` are passed over one pick at a time, so skipping
    a team at a round boundary moves the round forward exactly once. The
    result is `completed` when the next pick would exceed
    ``max_rounds * len(order)`` or every team has finished.
    """
    validate_order(order)
    if max_rounds < 1:
        raise ValidationError(f"Max rounds must be at least 1, got {max_rounds}.")
    if current_team not in order:
        raise TeamNotInOrderError(current_team)

    if current_round > max_rounds:
        return TurnAdvance(
            completed=True,
            team=None,
            round=current_round,
            overall_pick=total_picks(order, max_rounds),
        )

    pick = overall_pick(order, current_team, current_round, snake)
    finished = set(finished_teams)
    if finished.issuperset(order):
        return TurnAdvance(completed=True, team=None, round=current_round, overall_pick=pick)

    limit = total_picks(order, max_rounds)
    skipped: List[str] = []
    next_pick = pick + 1
    while next_pick <= limit:
        team, round_number = turn_for_pick(order, next_pick, snake)
        if team not in finished:
            return TurnAdvance(
                completed=False,
                team=team,
                round=round_number,
                overall_pick=next_pick,
                skipped=tuple(skipped),
            )
        skipped.append(team)
        next_pick += 1

    return TurnAdvance(
        completed=True,
        team=None,
        round=current_round,
        overall_pick=pick,
        skipped=tuple(skipped),
    )


def first_turn(order: Sequence[str], snake: bool = False, finished_teams: Iterable[str] = ()) -> Optional[TurnAdvance]:
    """Opening turn of a draft or window; None when every team has finished."""
    validate_order(order)
    finished = set(finished_teams)
    for pick in range(1, len(order) + 1):
        team, round_number = turn_for_pick(order, pick, snake)
        if team not in finished:
            return TurnAdvance(completed=False, team=team, round=round_number, overall_pick=pick)
    return None
