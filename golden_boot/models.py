# golden_boot/models.py
"""
Typed league records.

DynamoDB hands back Decimals and, for legacy rows, a mix of attribute
spellings. from_item/to_item are the only place those are converted, so the
rest of the package works with plain ints, strings and lists.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from golden_boot import config
from golden_boot.errors import ConflictError
from golden_boot.types import OwnerStint, TransferActionDict
from golden_boot.utils import parse_iso

DRAFT_STATUSES = ("not_started", "in_progress", "completed")
TRANSFER_STATUSES = ("not_started", "active", "completed")
ACTION_TYPES = ("drop", "pickup", "turn_advanced", "done")


def to_native(value: Any) -> Any:
    """Recursively convert DynamoDB Decimals into ints/floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: to_native(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_native(v) for v in value]
    if isinstance(value, set):
        return sorted(to_native(v) for v in value)
    return value


def to_dynamo(value: Any) -> Any:
    """Recursively convert floats to Decimal for DynamoDB writes."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(to_native(value))


def _str_list(value: Any) -> List[str]:
    return [str(to_native(v)) for v in (value or [])]


def _prune(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in item.items() if v is not None}


@dataclass
class Player:
    """Reference player row (name, club, season goals)."""
    player_id: str
    name: str
    club: Optional[str] = None
    goals: int = 0

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Player":
        player_id = str(to_native(item.get("id")))
        return cls(
            player_id=player_id,
            name=item.get("name") or f"Player {player_id}",
            club=item.get("team"),
            goals=_int(item.get(config.PLAYER_GOALS_ATTRIBUTE)),
        )


@dataclass
class FantasyTeam:
    """A league member's fantasy team."""
    team_id: str
    owner_name: Optional[str] = None
    team_name: Optional[str] = None
    logo: Optional[str] = None
    league_id: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "FantasyTeam":
        return cls(
            team_id=str(to_native(item.get("FantasyPlayerId"))),
            owner_name=item.get("FantasyPlayerName"),
            team_name=item.get("TeamName"),
            logo=item.get("TeamLogo"),
            league_id=_str_or_none(item.get("LeagueId")),
        )


@dataclass
class TransferAction:
    """Immutable audit entry in the transfer log."""
    action_type: str
    fantasy_team_id: str
    round: int
    action_date: str
    player_id: Optional[str] = None
    player_name: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "TransferAction":
        # Older turn_advanced entries were written as {team, action, round, timestamp}
        return cls(
            action_type=item.get("action_type") or item.get("action") or "",
            fantasy_team_id=str(to_native(item.get("fantasy_team_id") or item.get("team") or "")),
            round=_int(item.get("round"), 1),
            action_date=item.get("action_date") or item.get("timestamp") or "",
            player_id=_str_or_none(item.get("player_id")),
            player_name=item.get("player_name"),
        )

    def to_item(self) -> TransferActionDict:
        return _prune({
            "action_type": self.action_type,
            "fantasy_team_id": self.fantasy_team_id,
            "round": self.round,
            "action_date": self.action_date,
            "player_id": self.player_id,
            "player_name": self.player_name,
        })


@dataclass
class ActiveTransfer:
    """A team's position in its two-step transfer."""
    step: str
    dropped_player_id: Optional[str] = None
    drop_timestamp: Optional[str] = None
    goals_at_drop: int = 0

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "ActiveTransfer":
        return cls(
            step=item.get("step", "drop"),
            dropped_player_id=_str_or_none(item.get("droppedPlayerId")),
            drop_timestamp=item.get("dropTimestamp"),
            goals_at_drop=_int(item.get("goalsAtDrop")),
        )

    def to_item(self) -> Dict[str, Any]:
        return _prune({
            "step": self.step,
            "droppedPlayerId": self.dropped_player_id,
            "dropTimestamp": self.drop_timestamp,
            "goalsAtDrop": self.goals_at_drop,
        })


@dataclass
class TransferWindowState:
    """Transfer-phase fields of the per-league draft row."""
    status: str = "not_started"
    start: Optional[str] = None
    end: Optional[str] = None
    order: Optional[List[str]] = None
    current_turn_team: Optional[str] = None
    round: int = 1
    max_rounds: int = config.DEFAULT_TRANSFER_MAX_ROUNDS
    snake_order: bool = False
    actions: List[TransferAction] = field(default_factory=list)
    active_transfers: Dict[str, ActiveTransfer] = field(default_factory=dict)
    finished_teams: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def is_open_at(self, moment: datetime) -> bool:
        """True when `moment` falls inside the window's start/end (missing bounds are open)."""
        start = parse_iso(self.start)
        end = parse_iso(self.end)
        if start and moment < start:
            return False
        if end and moment > end:
            return False
        return True

    def pending_drop(self, team_id: str) -> Optional[ActiveTransfer]:
        transfer = self.active_transfers.get(team_id)
        if transfer and transfer.step == "pickup":
            return transfer
        return None

    def record_drop(self, team_id: str, player_id: str, goals_at_drop: int, dropped_at: str) -> ActiveTransfer:
        """Move a team to its pickup step after a drop."""
        if self.current_turn_team != team_id:
            raise ConflictError(
                f"It's not your turn. Current turn: {self.current_turn_team}",
                {"currentTurn": self.current_turn_team},
            )
        if self.pending_drop(team_id):
            raise ConflictError(
                "You have already dropped a player this turn. Pick up a player to complete the transfer.",
                {"droppedPlayerId": self.active_transfers[team_id].dropped_player_id},
            )
        transfer = ActiveTransfer(
            step="pickup",
            dropped_player_id=player_id,
            drop_timestamp=dropped_at,
            goals_at_drop=goals_at_drop,
        )
        self.active_transfers[team_id] = transfer
        return transfer

    def clear_after_pickup(self, team_id: str) -> Optional[ActiveTransfer]:
        return self.active_transfers.pop(team_id, None)

    def log_action(self, action_type: str, team_id: str, action_date: str,
                   player_id: Optional[str] = None, player_name: Optional[str] = None) -> TransferAction:
        if action_type not in ACTION_TYPES:
            raise ValueError(f"Unknown transfer action: {action_type}")
        action = TransferAction(
            action_type=action_type,
            fantasy_team_id=team_id,
            round=self.round,
            action_date=action_date,
            player_id=player_id,
            player_name=player_name,
        )
        self.actions.append(action)
        return action

    def active_transfers_item(self) -> Dict[str, Any]:
        return {team: transfer.to_item() for team, transfer in self.active_transfers.items()}


@dataclass
class DraftRecord:
    """The per-league draft row carrying both draft and transfer state."""
    league_id: str
    draft_order: List[str] = field(default_factory=list)
    draft_status: str = "not_started"
    current_turn_team: Optional[str] = None
    current_round: int = 1
    overall_pick: int = 1
    number_of_rounds: int = config.DEFAULT_DRAFT_ROUNDS
    draft_snake_order: bool = True
    draft_start_time: Optional[str] = None
    active_participants: List[str] = field(default_factory=list)
    drafted_players: List[str] = field(default_factory=list)
    session_ended: Optional[bool] = None
    current_team_turn_ends: Optional[str] = None
    state_version: int = 0
    transfer: TransferWindowState = field(default_factory=TransferWindowState)

    @property
    def transfer_order(self) -> List[str]:
        """Order used for transfer turns; falls back to the draft order."""
        return list(self.transfer.order or self.draft_order)

    @property
    def is_draft_complete(self) -> bool:
        return self.draft_status == "completed"

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "DraftRecord":
        draft_order = item.get("draftOrder")
        if draft_order is None:
            draft_order = item.get("draft_order")
        transfer = TransferWindowState(
            status=item.get("transfer_window_status") or "not_started",
            start=item.get("transfer_window_start"),
            end=item.get("transfer_window_end"),
            order=_str_list(item["transferOrder"]) if item.get("transferOrder") else None,
            current_turn_team=_str_or_none(item.get("transfer_current_turn_team")),
            round=_int(item.get("transfer_round"), 1),
            max_rounds=_int(item.get("transfer_max_rounds"), config.DEFAULT_TRANSFER_MAX_ROUNDS),
            snake_order=bool(item.get("transfer_snake_order", False)),
            actions=[TransferAction.from_item(a) for a in item.get("transfer_actions") or []],
            active_transfers={
                str(team): ActiveTransfer.from_item(state)
                for team, state in (item.get("activeTransfers") or {}).items()
            },
            finished_teams=_str_list(item.get("finishedTransferringTeams")),
        )
        session_ended = item.get("sessionEnded")
        return cls(
            league_id=str(to_native(item["league_id"])),
            draft_order=_str_list(draft_order),
            draft_status=item.get("draft_status") or "not_started",
            current_turn_team=_str_or_none(item.get("current_turn_team")),
            current_round=_int(item.get("current_round"), 1),
            overall_pick=_int(item.get("overall_pick"), 1),
            number_of_rounds=_int(item.get("numberOfRounds"), config.DEFAULT_DRAFT_ROUNDS),
            draft_snake_order=bool(item.get("draft_snake_order", True)),
            draft_start_time=item.get("draftStartTime"),
            active_participants=_str_list(item.get("activeParticipants")),
            drafted_players=_str_list(item.get("drafted_players")),
            session_ended=None if session_ended is None else bool(session_ended),
            current_team_turn_ends=item.get("current_team_turn_ends"),
            state_version=_int(item.get("state_version")),
            transfer=transfer,
        )

    def to_item(self) -> Dict[str, Any]:
        transfer = self.transfer
        return _prune({
            "league_id": self.league_id,
            "draftOrder": list(self.draft_order),
            "draft_status": self.draft_status,
            "current_turn_team": self.current_turn_team,
            "current_round": self.current_round,
            "overall_pick": self.overall_pick,
            "numberOfRounds": self.number_of_rounds,
            "draft_snake_order": self.draft_snake_order,
            "draftStartTime": self.draft_start_time,
            "activeParticipants": list(self.active_participants),
            "drafted_players": list(self.drafted_players),
            "sessionEnded": self.session_ended,
            "current_team_turn_ends": self.current_team_turn_ends,
            "state_version": self.state_version,
            "transferOrder": list(transfer.order) if transfer.order else None,
            "transfer_window_status": transfer.status,
            "transfer_window_start": transfer.start,
            "transfer_window_end": transfer.end,
            "transfer_current_turn_team": transfer.current_turn_team,
            "transfer_round": transfer.round,
            "transfer_max_rounds": transfer.max_rounds,
            "transfer_snake_order": transfer.snake_order,
            "transfer_actions": [a.to_item() for a in transfer.actions],
            "activeTransfers": transfer.active_transfers_item(),
            "finishedTransferringTeams": list(transfer.finished_teams),
        })


@dataclass
class RosterEntry:
    """One player's ownership row in a league's roster table."""
    player_id: str
    team_drafted_by: Optional[str] = None
    draft_time: Optional[str] = None
    player_name: Optional[str] = None
    dropped: bool = False
    dropped_at: Optional[str] = None
    available_for_pickup: bool = False
    goals_at_drop: int = 0
    picked_up: bool = False
    picked_up_at: Optional[str] = None
    goals_before_pickup: int = 0
    transfer_pickup: bool = False
    previous_owners: List[OwnerStint] = field(default_factory=list)

    @property
    def joined_goals(self) -> int:
        """Season goals already scored when the current owner acquired the player."""
        return self.goals_before_pickup if self.picked_up else 0

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "RosterEntry":
        return cls(
            player_id=str(to_native(item["player_id"])),
            team_drafted_by=_str_or_none(item.get("team_drafted_by")),
            draft_time=item.get("draft_time"),
            player_name=item.get("player_name"),
            dropped=bool(item.get("dropped", False)),
            dropped_at=item.get("dropped_at"),
            available_for_pickup=bool(item.get("available_for_pickup", False)),
            goals_at_drop=_int(item.get("goals_at_drop")),
            picked_up=bool(item.get("picked_up", False)) or bool(item.get("picked_up_at")),
            picked_up_at=item.get("picked_up_at"),
            goals_before_pickup=_int(item.get("goals_before_pickup")),
            transfer_pickup=bool(item.get("transfer_pickup", False)),
            previous_owners=[
                {
                    "team_id": str(to_native(stint.get("team_id"))),
                    "joined_at": stint.get("joined_at"),
                    "left_at": stint.get("left_at"),
                    "goals_at_join": _int(stint.get("goals_at_join")),
                    "goals_at_leave": _int(stint.get("goals_at_leave")),
                }
                for stint in item.get("previous_owners") or []
            ],
        )

    def to_item(self) -> Dict[str, Any]:
        return _prune({
            "player_id": self.player_id,
            "team_drafted_by": self.team_drafted_by,
            "draft_time": self.draft_time,
            "player_name": self.player_name,
            "dropped": self.dropped,
            "dropped_at": self.dropped_at,
            "available_for_pickup": self.available_for_pickup,
            "goals_at_drop": self.goals_at_drop,
            "picked_up": self.picked_up,
            "picked_up_at": self.picked_up_at,
            "goals_before_pickup": self.goals_before_pickup,
            "transfer_pickup": self.transfer_pickup,
            "previous_owners": [dict(stint) for stint in self.previous_owners],
        })

    def current_stint(self) -> OwnerStint:
        """The current owner's stint, as archived when another team picks the player up."""
        return {
            "team_id": self.team_drafted_by or "",
            "joined_at": self.picked_up_at if self.picked_up else self.draft_time,
            "left_at": self.dropped_at,
            "goals_at_join": self.joined_goals,
            "goals_at_leave": self.goals_at_drop,
        }
