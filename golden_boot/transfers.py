# golden_boot/transfers.py
"""
Transfer window operations.

A window runs through `transfer_max_rounds` rounds of the transfer order.
On its turn a team drops one player and then picks one up; the pickup ends
the team's turn. Teams can opt out for the rest of the window with
mark_team_done, and the commissioner can force the turn along with
advance_transfer_turn.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError

from golden_boot import config, sequencer
from golden_boot.dynamo import LeagueStore, TransactItem, UpdateExpression
from golden_boot.errors import ConflictError, NotFoundError, TeamNotInOrderError, ValidationError
from golden_boot.models import DraftRecord, RosterEntry, TransferWindowState
from golden_boot.sequencer import TurnAdvance
from golden_boot.utils import parse_iso, require_fields, to_iso, utc_now

logger = logging.getLogger(__name__)


def _require_open_window(window: TransferWindowState, now: datetime) -> None:
    if window.is_completed:
        raise ConflictError("Transfer window has been completed.")
    if not window.is_active:
        raise ConflictError("Transfer window is not active.")
    if not window.is_open_at(now):
        raise ConflictError(
            "Transfer window is closed.",
            {"transferWindowStart": window.start, "transferWindowEnd": window.end},
        )


def _require_turn(window: TransferWindowState, team_id: str) -> None:
    if team_id in window.finished_teams:
        raise ConflictError("You have already finished transferring for this window.")
    if window.current_turn_team != team_id:
        raise ConflictError(
            f"It's not your turn. Current turn: {window.current_turn_team}",
            {"currentTurn": window.current_turn_team},
        )


def _goal_snapshot(store: LeagueStore, player_id: str) -> Tuple[int, str]:
    """Season goals and display name for a player; lookup failures count as zero goals."""
    try:
        player = store.get_player(player_id)
    except ClientError as e:
        logger.warning(f"Could not read goals for player {player_id}, recording 0: {str(e)}")
        return 0, f"Player {player_id}"
    if not player:
        return 0, f"Player {player_id}"
    return player.goals, player.name


def _apply_advance(update: UpdateExpression, advance: TurnAdvance, at: str) -> None:
    if advance.completed:
        update.set("transfer_window_status", "completed")
        update.set("transfer_window_end", at)
    else:
        update.set("transfer_current_turn_team", advance.team)
        update.set("transfer_round", advance.round)


def _turn_info(previous: Optional[str], advance: TurnAdvance, record: DraftRecord) -> Dict[str, Any]:
    window = record.transfer
    if advance.completed:
        return {
            "completed": True,
            "message": "Transfer window completed",
            "previousTurn": previous,
            "currentTurn": None,
            "round": window.round,
            "maxRounds": window.max_rounds,
            "skippedTeams": list(advance.skipped),
        }
    return {
        "completed": False,
        "previousTurn": previous,
        "currentTurn": advance.team,
        "round": advance.round,
        "maxRounds": window.max_rounds,
        "overallPick": advance.overall_pick,
        "skippedTeams": list(advance.skipped),
        "transferOrder": record.transfer_order,
    }


def window_info(record: DraftRecord, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Public view of the transfer window, including whether it is open right now."""
    now = now or utc_now()
    window = record.transfer
    end = parse_iso(window.end)
    is_active = window.is_active and window.is_open_at(now)
    time_remaining = max(0, int((end - now).total_seconds() * 1000)) if is_active and end else 0
    return {
        "league_id": record.league_id,
        "transferWindowStatus": window.status,
        "transferWindowStart": window.start,
        "transferWindowEnd": window.end,
        "isActive": is_active,
        "timeRemaining": time_remaining,
        "currentTurn": window.current_turn_team,
        "round": window.round,
        "maxRounds": window.max_rounds,
        "snakeOrder": window.snake_order,
        "transferOrder": record.transfer_order,
        "activeTransfers": window.active_transfers_item(),
        "finishedTransferringTeams": list(window.finished_teams),
        "transferActions": [action.to_item() for action in window.actions],
    }


def get_transfer_window(store: LeagueStore, league_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return window_info(store.get_draft_record(league_id), now)


def start_transfer_window(store: LeagueStore, league_id: str, start: str, end: str,
                          max_rounds: Optional[int] = None, snake_order: Optional[bool] = None,
                          now: Optional[datetime] = None) -> Dict[str, Any]:
    """Open a transfer window with the first team in the transfer order on the clock."""
    require_fields({"transferWindowStart": start, "transferWindowEnd": end},
                   "transferWindowStart", "transferWindowEnd")
    start_at = parse_iso(start)
    end_at = parse_iso(end)
    if end_at <= start_at:
        raise ValidationError("transferWindowEnd must be after transferWindowStart.")
    if max_rounds is not None and (isinstance(max_rounds, bool) or not isinstance(max_rounds, int)
                                   or max_rounds < 1):
        raise ValidationError("maxRounds must be a positive integer.")
    if snake_order is not None and not isinstance(snake_order, bool):
        raise ValidationError("snakeOrder must be true or false.")

    record = store.get_draft_record(league_id)
    window = record.transfer
    if window.is_active:
        raise ConflictError("Transfer window is already active.")
    order = record.transfer_order
    if not order:
        raise ConflictError("Transfer order is empty. Set a draft or transfer order first.")
    opening = sequencer.first_turn(order, window.snake_order if snake_order is None else snake_order)

    window.status = "active"
    window.start = to_iso(start_at)
    window.end = to_iso(end_at)
    window.current_turn_team = opening.team
    window.round = opening.round
    window.active_transfers = {}
    window.finished_teams = []
    if max_rounds is not None:
        window.max_rounds = max_rounds
    if snake_order is not None:
        window.snake_order = snake_order

    update = UpdateExpression().guard_version(record.state_version)
    update.set("transfer_window_status", window.status)
    update.set("transfer_window_start", window.start)
    update.set("transfer_window_end", window.end)
    update.set("transfer_current_turn_team", window.current_turn_team)
    update.set("transfer_round", window.round)
    update.set("transfer_max_rounds", window.max_rounds)
    update.set("transfer_snake_order", window.snake_order)
    update.set("activeTransfers", {})
    update.set("finishedTransferringTeams", [])
    update.set_if_missing("transfer_actions", [])
    store.update_draft_record(league_id, update)

    logger.info(f"Transfer window started for league {league_id}: {window.start} - {window.end}, "
                f"first turn {window.current_turn_team}")
    return {
        "message": "Transfer window started successfully",
        "transferWindowInfo": window_info(record, now),
    }


def drop_player(store: LeagueStore, league_id: str, team_id: str, player_id: str,
                now: Optional[datetime] = None) -> Dict[str, Any]:
    """First half of a transfer: release a rostered player back to the pool."""
    require_fields({"league_id": league_id, "team_id": team_id, "player_id": player_id},
                   "league_id", "team_id", "player_id")
    now = now or utc_now()
    record = store.get_draft_record(league_id)
    window = record.transfer
    _require_open_window(window, now)
    if team_id in window.finished_teams:
        raise ConflictError("You have already finished transferring for this window.")

    goals, player_name = _goal_snapshot(store, player_id)
    dropped_at = to_iso(now)
    window.record_drop(team_id, player_id, goals, dropped_at)
    action = window.log_action("drop", team_id, dropped_at, player_id, player_name)

    roster = UpdateExpression()
    owner = roster.name("team_drafted_by")
    dropped = roster.name("dropped")
    roster.condition(f"attribute_exists({roster.name('player_id')})")
    roster.condition(f"{owner} = {roster.value(team_id)}")
    roster.condition(f"attribute_not_exists({dropped}) OR {dropped} = {roster.value(False)}")
    roster.set("dropped", True)
    roster.set("dropped_at", dropped_at)
    roster.set("available_for_pickup", True)
    roster.set("goals_at_drop", goals)

    draft = UpdateExpression().guard_version(record.state_version)
    draft.set("activeTransfers", window.active_transfers_item())
    draft.append("transfer_actions", [action.to_item()])

    store.transact([
        TransactItem(
            table=config.league_table_name(league_id),
            key={"player_id": player_id},
            update=roster,
            conflict_message="Player not found on your roster or already dropped.",
        ),
        store.draft_update(league_id, draft),
    ])
    logger.info(f"Team {team_id} dropped player {player_id} in league {league_id} with {goals} goals")

    return {
        "message": "Player dropped successfully. Now pick up a player to complete your transfer.",
        "droppedPlayer": {
            "player_id": player_id,
            "player_name": player_name,
            "dropped_at": dropped_at,
            "goals_at_drop": goals,
        },
        "nextStep": "pickup",
    }


def pickup_player(store: LeagueStore, league_id: str, team_id: str, player_id: str,
                  now: Optional[datetime] = None) -> Dict[str, Any]:
    """Second half of a transfer: sign a free agent or a dropped player and pass the turn on.

    The roster write, the audit entries and the turn advance commit together.
    """
    require_fields({"league_id": league_id, "team_id": team_id, "player_id": player_id},
                   "league_id", "team_id", "player_id")
    now = now or utc_now()
    record = store.get_draft_record(league_id)
    window = record.transfer
    _require_open_window(window, now)
    _require_turn(window, team_id)
    if not window.pending_drop(team_id):
        raise ConflictError("You must drop a player before picking one up.")

    player = store.get_player(player_id)
    if not player:
        raise NotFoundError(f"Player {player_id} not found.", {"player_id": player_id})

    picked_at = to_iso(now)
    roster_table = config.league_table_name(league_id)
    existing = store.get_roster_entry(league_id, player_id)

    if existing:
        if not (existing.dropped and existing.available_for_pickup):
            raise ConflictError("Player not available for pickup (not dropped or already owned).")
        roster = UpdateExpression()
        available = roster.name("available_for_pickup")
        dropped = roster.name("dropped")
        owner = roster.name("team_drafted_by")
        roster.condition(f"{available} = {roster.value(True)} AND {dropped} = {roster.value(True)}")
        if existing.team_drafted_by:
            roster.condition(f"{owner} = {roster.value(existing.team_drafted_by)}")
        roster.set("team_drafted_by", team_id)
        roster.set("player_name", player.name)
        roster.set("dropped", False)
        roster.set("available_for_pickup", False)
        roster.set("picked_up", True)
        roster.set("picked_up_at", picked_at)
        roster.set("goals_before_pickup", player.goals)
        roster.set("transfer_pickup", True)
        roster.append("previous_owners", [existing.current_stint()])
        roster.remove("dropped_at")
        roster.remove("goals_at_drop")
        roster_write = TransactItem(
            table=roster_table,
            key={"player_id": player_id},
            update=roster,
            conflict_message="Player not available for pickup (not dropped or already owned).",
        )
    else:
        entry = RosterEntry(
            player_id=player_id,
            team_drafted_by=team_id,
            draft_time=picked_at,
            player_name=player.name,
            picked_up=True,
            picked_up_at=picked_at,
            goals_before_pickup=player.goals,
            transfer_pickup=True,
        )
        roster_write = TransactItem(
            table=roster_table,
            put=entry.to_item(),
            put_condition="attribute_not_exists(player_id)",
            conflict_message="Player not available for pickup (not dropped or already owned).",
        )

    window.clear_after_pickup(team_id)
    actions = [window.log_action("pickup", team_id, picked_at, player_id, player.name)]
    advance = sequencer.advance_turn(
        record.transfer_order, team_id, window.round, window.max_rounds,
        window.snake_order, window.finished_teams,
    )
    if not advance.completed:
        actions.append(window.log_action("turn_advanced", team_id, picked_at))

    draft = UpdateExpression().guard_version(record.state_version)
    draft.set("activeTransfers", window.active_transfers_item())
    draft.append("transfer_actions", [action.to_item() for action in actions])
    _apply_advance(draft, advance, picked_at)

    store.transact([roster_write, store.draft_update(league_id, draft)])
    logger.info(f"Team {team_id} picked up player {player_id} in league {league_id} "
                f"({player.goals} goals before pickup)")

    return {
        "message": "Player picked up successfully. Transfer completed.",
        "pickedUpPlayer": {
            "player_id": player_id,
            "player_name": player.name,
            "picked_up_at": picked_at,
            "goals_before_pickup": player.goals,
        },
        "turnAdvanced": _turn_info(team_id, advance, record),
    }


def advance_transfer_turn(store: LeagueStore, league_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Move the transfer turn to the next team without a transfer."""
    now = now or utc_now()
    record = store.get_draft_record(league_id)
    window = record.transfer
    if window.is_completed:
        raise ValidationError("Transfer window already completed.", {"completed": True})
    if not window.is_active:
        raise ConflictError("Transfer window is not active.")

    previous = window.current_turn_team
    advance = sequencer.advance_turn(
        record.transfer_order, previous, window.round, window.max_rounds,
        window.snake_order, window.finished_teams,
    )
    at = to_iso(now)

    update = UpdateExpression().guard_version(record.state_version)
    if not advance.completed:
        update.append("transfer_actions", [window.log_action("turn_advanced", previous, at).to_item()])
    _apply_advance(update, advance, at)
    store.update_draft_record(league_id, update)

    if advance.completed:
        logger.info(f"Transfer window completed for league {league_id} after round {window.round}")
    else:
        logger.info(f"Transfer turn in league {league_id} advanced from {previous} to {advance.team} "
                    f"(round {advance.round})")
    return _turn_info(previous, advance, record)


def mark_team_done(store: LeagueStore, league_id: str, team_id: str,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
    """Take a team out of the remaining transfer turns."""
    require_fields({"league_id": league_id, "team_id": team_id}, "league_id", "team_id")
    now = now or utc_now()
    record = store.get_draft_record(league_id)
    window = record.transfer
    if window.is_completed:
        raise ConflictError("Transfer window has been completed.")
    if not window.is_active:
        raise ConflictError("Transfer window is not active.")

    order = record.transfer_order
    if team_id not in order:
        raise TeamNotInOrderError(team_id)
    if team_id in window.finished_teams:
        return {
            "message": "Team has already finished transferring.",
            "finishedTransferringTeams": list(window.finished_teams),
            "turnAdvanced": None,
        }
    if window.pending_drop(team_id):
        raise ConflictError("Pick up a player to complete your transfer before finishing.")

    at = to_iso(now)
    finished: List[str] = window.finished_teams + [team_id]
    update = UpdateExpression().guard_version(record.state_version)
    update.set("finishedTransferringTeams", finished)
    update.append("transfer_actions", [window.log_action("done", team_id, at).to_item()])
    window.finished_teams = finished

    turn_info = None
    if window.current_turn_team == team_id:
        advance = sequencer.advance_turn(
            order, team_id, window.round, window.max_rounds, window.snake_order, finished,
        )
        _apply_advance(update, advance, at)
        turn_info = _turn_info(team_id, advance, record)
    elif set(finished).issuperset(order):
        update.set("transfer_window_status", "completed")
        update.set("transfer_window_end", at)
        turn_info = {"completed": True, "message": "Transfer window completed", "currentTurn": None}

    store.update_draft_record(league_id, update)
    logger.info(f"Team {team_id} finished transferring in league {league_id}")
    return {
        "message": "Team marked as done transferring.",
        "finishedTransferringTeams": finished,
        "turnAdvanced": turn_info,
    }
