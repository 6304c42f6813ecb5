# golden_boot/draft.py
"""
Draft-phase operations: settings, joining the session, picks and reset.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from golden_boot import config, sequencer
from golden_boot.dynamo import LeagueStore, TransactItem, UpdateExpression
from golden_boot.errors import ConflictError, NotFoundError, TeamNotInOrderError, ValidationError
from golden_boot.models import DRAFT_STATUSES, TRANSFER_STATUSES, DraftRecord, RosterEntry
from golden_boot.utils import parse_iso, require_fields, to_iso, utc_now

logger = logging.getLogger(__name__)


def get_draft_settings(store: LeagueStore, league_id: str) -> Dict[str, Any]:
    return store.get_draft_record(league_id).to_item()


def list_drafted_players(store: LeagueStore, league_id: str) -> List[Dict[str, Any]]:
    """Roster rows for a league, oldest pick first."""
    entries = store.list_roster(league_id)
    entries.sort(key=lambda entry: entry.draft_time or "")
    return [entry.to_item() for entry in entries]


def draft_player(store: LeagueStore, league_id: str, team_id: str, player_id: str,
                 now: Optional[datetime] = None) -> Dict[str, Any]:
    """Record a pick for the team on the clock and move the draft pointer on.

    The roster insert and the pointer move are one transaction: a player that
    is already on a roster, or a pointer that moved since it was read, fails
    the whole pick with a conflict.
    """
    require_fields({"league_id": league_id, "team_id": team_id, "player_id": player_id},
                   "league_id", "team_id", "player_id")
    now = now or utc_now()
    record = store.get_draft_record(league_id)
    order = record.draft_order

    if record.is_draft_complete:
        raise ConflictError("The draft is complete.")
    start = parse_iso(record.draft_start_time)
    if start and now < start:
        raise ConflictError("Draft session has not started yet.", {"draftStartTime": record.draft_start_time})
    sequencer.validate_order(order)

    current_team = record.current_turn_team or order[0]
    if current_team not in order:
        raise TeamNotInOrderError(current_team)
    if team_id != current_team:
        raise ConflictError(f"It's not your turn to draft. Current turn: {current_team}",
                            {"currentTurn": current_team})

    pick = sequencer.overall_pick(order, current_team, record.current_round, record.draft_snake_order)
    if pick > sequencer.total_picks(order, record.number_of_rounds):
        raise ConflictError("The draft is complete.")

    player = store.get_player(player_id)
    if not player:
        raise NotFoundError(f"Player {player_id} not found.", {"player_id": player_id})

    advance = sequencer.advance_turn(
        order, current_team, record.current_round, record.number_of_rounds, record.draft_snake_order
    )
    drafted_at = to_iso(now)

    entry = RosterEntry(
        player_id=player_id,
        team_drafted_by=team_id,
        draft_time=drafted_at,
        player_name=player.name,
    )
    roster_put = TransactItem(
        table=config.league_table_name(league_id),
        put=entry.to_item(),
        put_condition="attribute_not_exists(player_id)",
        conflict_message=f"Player {player_id} has already been drafted.",
    )

    update = UpdateExpression().guard_version(record.state_version).append("drafted_players", [player_id])
    if advance.completed:
        update.set("draft_status", "completed")
    else:
        update.set("draft_status", "in_progress")
        update.set("current_turn_team", advance.team)
        update.set("current_round", advance.round)
        update.set("overall_pick", advance.overall_pick)

    store.transact([roster_put, store.draft_update(league_id, update)])
    logger.info(f"Player {player_id} drafted by {team_id} in league {league_id} (pick {pick})")

    return {
        "message": f"Player {player_id} drafted by {team_id}",
        "draftedPlayer": entry.to_item(),
        "draft": {
            "completed": advance.completed,
            "status": "completed" if advance.completed else "in_progress",
            "pick": pick,
            "currentTurn": current_team if advance.completed else advance.team,
            "round": record.current_round if advance.completed else advance.round,
            "overallPick": pick if advance.completed else advance.overall_pick,
        },
    }


def join_draft_session(store: LeagueStore, league_id: str, team_id: str) -> Dict[str, Any]:
    require_fields({"league_id": league_id, "teamId": team_id}, "league_id", "teamId")
    record = store.get_draft_record(league_id)
    if team_id in record.active_participants:
        return {"message": "Team already joined", "activeParticipants": record.active_participants}

    update = UpdateExpression()
    participants = update.name("activeParticipants")
    update.condition(f"attribute_exists({update.name('league_id')})")
    update.condition(
        f"attribute_not_exists({participants}) OR NOT contains({participants}, {update.value(team_id)})"
    )
    update.append("activeParticipants", [team_id])
    try:
        attributes = store.update_draft_record(league_id, update, "Team already joined")
    except ConflictError:
        logger.info(f"Team {team_id} joined league {league_id} draft concurrently")
        return {"message": "Team already joined", "activeParticipants": record.active_participants + [team_id]}

    logger.info(f"Team {team_id} joined draft session for league {league_id}")
    return {"message": "Team joined draft session", "activeParticipants": attributes.get("activeParticipants", [])}


def reset_draft(store: LeagueStore, league_id: str) -> Dict[str, Any]:
    """Clear every pick and put the draft back at round 1, pick 1."""
    record = store.get_draft_record(league_id)
    deleted = store.clear_roster(league_id)

    update = UpdateExpression()
    update.condition(f"attribute_exists({update.name('league_id')})")
    update.set("draft_status", "in_progress")
    update.set("overall_pick", 1)
    update.set("current_round", 1)
    update.set("drafted_players", [])
    update.increment("state_version")
    if record.draft_order:
        update.set("current_turn_team", record.draft_order[0])
    else:
        update.remove("current_turn_team")
    store.update_draft_record(league_id, update)

    reset_rosters = store.reset_fantasy_rosters(league_id)
    logger.info(f"Reset draft for league {league_id}: {deleted} picks cleared, {reset_rosters} rosters reset")
    return {
        "success": True,
        "message": "Draft reset successfully",
        "deletedPlayers": deleted,
        "resetRosters": reset_rosters,
    }


def _team_order(value: Any, field_name: str) -> List[str]:
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be an array.")
    order = [str(team) for team in value]
    try:
        sequencer.validate_order(order)
    except ValidationError as e:
        raise ValidationError(f"{field_name}: {e.message}")
    return order


def _positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value or value < 1:
        raise ValidationError(f"{field_name} must be a positive integer.")
    return int(value)


def _flag(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false.")
    return value


def _timestamp(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp.")
    parse_iso(value)
    return value


def _status(allowed):
    def check(value: Any, field_name: str) -> str:
        if value not in allowed:
            raise ValidationError(f"{field_name} must be one of: {', '.join(allowed)}.")
        return value
    return check


SETTINGS_FIELDS = {
    "draftStartTime": _timestamp,
    "numberOfRounds": _positive_int,
    "draftOrder": _team_order,
    "sessionEnded": _flag,
    "current_team_turn_ends": _timestamp,
    "overall_pick": _positive_int,
    "current_round": _positive_int,
    "draft_status": _status(DRAFT_STATUSES),
    "draft_snake_order": _flag,
    "transfer_max_rounds": _positive_int,
    "transfer_snake_order": _flag,
    "transferOrder": _team_order,
    "transfer_window_start": _timestamp,
    "transfer_window_end": _timestamp,
    "transfer_window_status": _status(TRANSFER_STATUSES),
}


def update_draft_settings(store: LeagueStore, league_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """Apply whitelisted draft/transfer settings. Unknown fields are ignored."""
    record = store.get_draft_record(league_id)
    values = {name: check(body[name], name) for name, check in SETTINGS_FIELDS.items() if name in body}

    if "appendToDraftOrder" in body:
        if "draftOrder" in values:
            raise ValidationError("Provide either draftOrder or appendToDraftOrder, not both.")
        appended = body["appendToDraftOrder"]
        appended = appended if isinstance(appended, list) else [appended]
        values["draftOrder"] = _team_order(record.draft_order + [str(team) for team in appended], "draftOrder")

    draft_order = values.get("draftOrder", record.draft_order)
    transfer_order = values.get("transferOrder", record.transfer.order) or draft_order

    if "current_turn_team" in body:
        team = str(body["current_turn_team"])
        if team not in draft_order:
            raise TeamNotInOrderError(team)
        values["current_turn_team"] = team
    if "transfer_current_turn_team" in body:
        team = str(body["transfer_current_turn_team"])
        if team not in transfer_order:
            raise TeamNotInOrderError(team)
        values["transfer_current_turn_team"] = team

    if not values:
        raise ValidationError("No fields provided to update.")

    update = UpdateExpression().guard_version(record.state_version)
    for name, value in values.items():
        update.set(name, value)
    attributes = store.update_draft_record(league_id, update)
    logger.info(f"Updated draft settings for league {league_id}: {sorted(values)}")

    return {
        "message": "Draft data updated successfully",
        "updatedAttributes": DraftRecord.from_item(attributes).to_item(),
    }
