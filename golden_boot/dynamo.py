# golden_boot/dynamo.py
"""
DynamoDB access for league, draft and roster data.

All turn-dependent writes go through LeagueStore.transact so that the roster
change and the draft-row update either both land or neither does. The draft
row carries a state_version counter; every such write is conditioned on the
version that was read.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import boto3
from boto3.dynamodb.conditions import Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from golden_boot import config
from golden_boot.errors import ConflictError, NotFoundError
from golden_boot.models import DraftRecord, FantasyTeam, Player, RosterEntry, to_dynamo, to_native

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()

STALE_STATE_MESSAGE = "League state changed while processing the request. Refresh and try again."


def serialize_values(values: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Native values -> DynamoDB wire format for the low-level client."""
    return {key: _serializer.serialize(to_dynamo(value)) for key, value in values.items()}


def league_key(league_id: str) -> Any:
    """Fantasy_Players stores LeagueId as a number; non-numeric ids are kept as strings."""
    return int(league_id) if str(league_id).isdigit() else str(league_id)


class UpdateExpression:
    """Accumulates SET/REMOVE clauses and a condition with generated placeholders."""

    def __init__(self):
        self._sets: List[str] = []
        self._removes: List[str] = []
        self._conditions: List[str] = []
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}

    def name(self, attribute: str) -> str:
        for placeholder, existing in self.names.items():
            if existing == attribute:
                return placeholder
        placeholder = f"#n{len(self.names)}"
        self.names[placeholder] = attribute
        return placeholder

    def value(self, value: Any) -> str:
        placeholder = f":v{len(self.values)}"
        self.values[placeholder] = value
        return placeholder

    def set(self, attribute: str, value: Any) -> "UpdateExpression":
        self._sets.append(f"{self.name(attribute)} = {self.value(value)}")
        return self

    def set_if_missing(self, attribute: str, value: Any) -> "UpdateExpression":
        placeholder = self.name(attribute)
        self._sets.append(f"{placeholder} = if_not_exists({placeholder}, {self.value(value)})")
        return self

    def append(self, attribute: str, items: Sequence[Any]) -> "UpdateExpression":
        placeholder = self.name(attribute)
        self._sets.append(
            f"{placeholder} = list_append(if_not_exists({placeholder}, {self.value([])}), {self.value(list(items))})"
        )
        return self

    def increment(self, attribute: str, by: int = 1) -> "UpdateExpression":
        placeholder = self.name(attribute)
        self._sets.append(f"{placeholder} = if_not_exists({placeholder}, {self.value(0)}) + {self.value(by)}")
        return self

    def remove(self, attribute: str) -> "UpdateExpression":
        self._removes.append(self.name(attribute))
        return self

    def condition(self, expression: str) -> "UpdateExpression":
        self._conditions.append(f"({expression})")
        return self

    def guard_version(self, expected: int) -> "UpdateExpression":
        """Condition on the draft row still being at `expected` and bump it."""
        version = self.name("state_version")
        self.condition(f"attribute_exists({self.name('league_id')})")
        if expected == 0:
            self.condition(f"attribute_not_exists({version}) OR {version} = {self.value(0)}")
        else:
            self.condition(f"{version} = {self.value(expected)}")
        return self.set("state_version", expected + 1)

    @property
    def update_expression(self) -> str:
        clauses = []
        if self._sets:
            clauses.append("SET " + ", ".join(self._sets))
        if self._removes:
            clauses.append("REMOVE " + ", ".join(self._removes))
        return " ".join(clauses)

    @property
    def condition_expression(self) -> Optional[str]:
        return " AND ".join(self._conditions) if self._conditions else None

    def request(self) -> Dict[str, Any]:
        """Keyword arguments for Table.update_item (native values)."""
        params: Dict[str, Any] = {"UpdateExpression": self.update_expression}
        if self.names:
            params["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            params["ExpressionAttributeValues"] = to_dynamo(dict(self.values))
        if self.condition_expression:
            params["ConditionExpression"] = self.condition_expression
        return params


@dataclass
class TransactItem:
    """One write inside a TransactWriteItems call."""
    table: str
    key: Dict[str, Any] = field(default_factory=dict)
    update: Optional[UpdateExpression] = None
    put: Optional[Dict[str, Any]] = None
    put_condition: Optional[str] = None
    conflict_message: str = STALE_STATE_MESSAGE

    def to_request(self) -> Dict[str, Any]:
        if self.put is not None:
            request: Dict[str, Any] = {"TableName": self.table, "Item": serialize_values(self.put)}
            if self.put_condition:
                request["ConditionExpression"] = self.put_condition
            return {"Put": request}

        request = {"TableName": self.table, "Key": serialize_values(self.key)}
        update = self.update or UpdateExpression()
        request["UpdateExpression"] = update.update_expression
        if update.names:
            request["ExpressionAttributeNames"] = dict(update.names)
        if update.values:
            request["ExpressionAttributeValues"] = serialize_values(update.values)
        if update.condition_expression:
            request["ConditionExpression"] = update.condition_expression
        return {"Update": request}


def _cancellation_codes(error: ClientError) -> List[Optional[str]]:
    reasons = error.response.get("CancellationReasons")
    if reasons:
        return [reason.get("Code") for reason in reasons]
    # Some endpoints only report the reasons inside the message text
    message = error.response.get("Error", {}).get("Message", "")
    match = re.search(r"\[([^\]]*)\]", message)
    if not match:
        return []
    return [code.strip() for code in match.group(1).split(",")]


class LeagueStore:
    """Client for the draft, roster, player and fantasy-team tables"""

    def __init__(self, dynamodb=None):
        self.dynamodb = dynamodb or boto3.resource("dynamodb", region_name=config.AWS_REGION)
        self.client = self.dynamodb.meta.client

        self.draft_table = self.dynamodb.Table(config.DRAFT_TABLE)
        self.players_table = self.dynamodb.Table(config.PLAYERS_TABLE)
        self.fantasy_players_table = self.dynamodb.Table(config.FANTASY_PLAYERS_TABLE)
        self.league_table = self.dynamodb.Table(config.LEAGUE_TABLE)

        logger.info(
            f"LeagueStore initialized with tables: {config.DRAFT_TABLE}, {config.PLAYERS_TABLE}, "
            f"{config.FANTASY_PLAYERS_TABLE}, {config.LEAGUE_TABLE}"
        )

    def roster_table(self, league_id: str):
        return self.dynamodb.Table(config.league_table_name(league_id))

    # Draft row

    def get_draft_record(self, league_id: str) -> DraftRecord:
        response = self.draft_table.get_item(Key={"league_id": league_id}, ConsistentRead=True)
        item = response.get("Item")
        if not item:
            logger.warning(f"No draft record found for league: {league_id}")
            raise NotFoundError("Draft record not found for this league.", {"league_id": league_id})
        return DraftRecord.from_item(item)

    def create_draft_record(self, record: DraftRecord) -> None:
        self.draft_table.put_item(
            Item=to_dynamo(record.to_item()),
            ConditionExpression="attribute_not_exists(league_id)",
        )
        logger.info(f"Initialized draft record for league {record.league_id}")

    def draft_update(self, league_id: str, update: UpdateExpression,
                     conflict_message: str = STALE_STATE_MESSAGE) -> TransactItem:
        return TransactItem(
            table=config.DRAFT_TABLE,
            key={"league_id": league_id},
            update=update,
            conflict_message=conflict_message,
        )

    def update_draft_record(self, league_id: str, update: UpdateExpression,
                            conflict_message: str = STALE_STATE_MESSAGE) -> Dict[str, Any]:
        """Single-item conditional update of the draft row; returns the new row."""
        return self.update_item(self.draft_table, {"league_id": league_id}, update, conflict_message)

    # Roster rows

    def get_roster_entry(self, league_id: str, player_id: str) -> Optional[RosterEntry]:
        response = self.roster_table(league_id).get_item(Key={"player_id": player_id}, ConsistentRead=True)
        item = response.get("Item")
        return RosterEntry.from_item(item) if item else None

    def list_roster(self, league_id: str) -> List[RosterEntry]:
        return [RosterEntry.from_item(item) for item in self._scan(self.roster_table(league_id))]

    def clear_roster(self, league_id: str) -> int:
        """Delete every roster row for a league; returns the number deleted."""
        table = self.roster_table(league_id)
        deleted = 0
        with table.batch_writer() as batch:
            for item in self._scan(table, ProjectionExpression="player_id"):
                batch.delete_item(Key={"player_id": item["player_id"]})
                deleted += 1
        logger.info(f"Deleted {deleted} roster rows from {table.name}")
        return deleted

    def create_roster_table(self, league_id: str) -> None:
        name = config.league_table_name(league_id)
        table = self.dynamodb.create_table(
            TableName=name,
            KeySchema=[{"AttributeName": "player_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "player_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        logger.info(f"Created roster table {name}")

    # Reference data

    def get_player(self, player_id: str) -> Optional[Player]:
        response = self.players_table.get_item(Key={"id": player_id})
        item = response.get("Item")
        return Player.from_item(item) if item else None

    def list_players(self) -> Dict[str, Player]:
        players = [Player.from_item(item) for item in self._scan(self.players_table)]
        return {player.player_id: player for player in players}

    def get_fantasy_team(self, team_id: str) -> Optional[FantasyTeam]:
        response = self.fantasy_players_table.get_item(Key={"FantasyPlayerId": league_key(team_id)})
        item = response.get("Item")
        return FantasyTeam.from_item(item) if item else None

    def list_fantasy_teams(self, league_id: str) -> List[FantasyTeam]:
        items = self._scan(
            self.fantasy_players_table,
            FilterExpression=Attr("LeagueId").eq(league_key(league_id)),
        )
        return [FantasyTeam.from_item(item) for item in items]

    def link_fantasy_team(self, team_id: str, league_id: str) -> None:
        """Attach a fantasy team to a league, creating the team row if needed."""
        self.fantasy_players_table.update_item(
            Key={"FantasyPlayerId": league_key(team_id)},
            UpdateExpression="SET LeagueId = :league_id",
            ExpressionAttributeValues={":league_id": league_key(league_id)},
        )

    def reset_fantasy_rosters(self, league_id: str) -> int:
        teams = self.list_fantasy_teams(league_id)
        for team in teams:
            self.fantasy_players_table.update_item(
                Key={"FantasyPlayerId": league_key(team.team_id)},
                UpdateExpression="SET Players = :empty, TotalGoals = :zero",
                ExpressionAttributeValues={":empty": [], ":zero": 0},
            )
        logger.info(f"Reset {len(teams)} fantasy rosters for league {league_id}")
        return len(teams)

    def league_exists(self, league_id: str) -> bool:
        return "Item" in self.league_table.get_item(Key={"leagueId": league_id})

    def put_league_settings(self, item: Dict[str, Any]) -> None:
        self.league_table.put_item(Item=to_dynamo(item), ConditionExpression="attribute_not_exists(leagueId)")

    # Writes

    def update_item(self, table, key: Dict[str, Any], update: UpdateExpression,
                    conflict_message: str = STALE_STATE_MESSAGE) -> Dict[str, Any]:
        try:
            response = table.update_item(Key=key, ReturnValues="ALL_NEW", **update.request())
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.warning(f"Conditional update on {table.name} {key} failed: {conflict_message}")
                raise ConflictError(conflict_message) from e
            raise
        return to_native(response.get("Attributes", {}))

    def transact(self, items: Sequence[TransactItem]) -> None:
        """Apply all items atomically. A failed condition raises that item's ConflictError."""
        try:
            self.client.transact_write_items(TransactItems=[item.to_request() for item in items])
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":
                raise
            codes = _cancellation_codes(e)
            for item, code in zip(items, codes):
                if code == "ConditionalCheckFailed":
                    logger.warning(f"Transaction condition failed on {item.table}: {item.conflict_message}")
                    raise ConflictError(item.conflict_message) from e
            if any(code == "TransactionConflict" for code in codes):
                raise ConflictError(STALE_STATE_MESSAGE) from e
            raise

    def _scan(self, table, **scan_params) -> List[Dict[str, Any]]:
        """Scan every page of a table."""
        items: List[Dict[str, Any]] = []
        last_evaluated_key = None
        while True:
            if last_evaluated_key:
                scan_params["ExclusiveStartKey"] = last_evaluated_key
            response = table.scan(**scan_params)
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if not last_evaluated_key:
                break
        return items
