"""Shared fixtures: an in-memory DynamoDB (moto) seeded with one league."""

import os
from datetime import datetime, timezone

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import boto3
import pytest
from moto import mock_aws

from golden_boot import config
from golden_boot.dynamo import LeagueStore
from golden_boot.models import DraftRecord, RosterEntry, TransferWindowState, to_dynamo

LEAGUE_ID = "1"
TEAMS = ["101", "102", "103"]
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
WINDOW_START = "2026-03-01T00:00:00Z"
WINDOW_END = "2026-03-08T00:00:00Z"

PLAYERS = {
    "p1": ("Erling Haaland", "Manchester City", 20),
    "p2": ("Mohamed Salah", "Liverpool", 15),
    "p3": ("Alexander Isak", "Newcastle", 12),
    "p4": ("Cole Palmer", "Chelsea", 10),
    "p5": ("Bukayo Saka", "Arsenal", 8),
    "p6": ("Ollie Watkins", "Aston Villa", 9),
    "p7": ("Bryan Mbeumo", "Brentford", 11),
}


def _create_table(dynamodb, name: str, key: str, key_type: str = "S"):
    return dynamodb.create_table(
        TableName=name,
        KeySchema=[{"AttributeName": key, "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": key, "AttributeType": key_type}],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def dynamodb():
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


@pytest.fixture
def store(dynamodb) -> LeagueStore:
    _create_table(dynamodb, config.DRAFT_TABLE, "league_id")
    players = _create_table(dynamodb, config.PLAYERS_TABLE, "id")
    fantasy = _create_table(dynamodb, config.FANTASY_PLAYERS_TABLE, "FantasyPlayerId", "N")
    _create_table(dynamodb, config.LEAGUE_TABLE, "leagueId")
    _create_table(dynamodb, config.league_table_name(LEAGUE_ID), "player_id")

    for player_id, (name, club, goals) in PLAYERS.items():
        players.put_item(Item={"id": player_id, "name": name, "team": club, config.PLAYER_GOALS_ATTRIBUTE: goals})
    for index, team_id in enumerate(TEAMS, start=1):
        fantasy.put_item(Item={
            "FantasyPlayerId": int(team_id),
            "FantasyPlayerName": f"Manager {index}",
            "TeamName": f"Team {index}",
            "TeamLogo": f"https://example.com/logo{index}.png",
            "LeagueId": int(LEAGUE_ID),
        })
    return LeagueStore(dynamodb=dynamodb)


def seed_draft(store: LeagueStore, **overrides) -> DraftRecord:
    """Write the league's draft row; keyword arguments override DraftRecord fields."""
    fields = {"league_id": LEAGUE_ID, "draft_order": list(TEAMS), "current_turn_team": TEAMS[0]}
    fields.update(overrides)
    record = DraftRecord(**fields)
    store.draft_table.put_item(Item=to_dynamo(record.to_item()))
    return record


def seed_window(store: LeagueStore, **overrides) -> DraftRecord:
    """Draft row with an active transfer window starting at the first team."""
    window = {
        "status": "active",
        "start": WINDOW_START,
        "end": WINDOW_END,
        "current_turn_team": TEAMS[0],
        "max_rounds": 2,
    }
    window.update(overrides)
    return seed_draft(store, draft_status="completed", transfer=TransferWindowState(**window))


def seed_roster(store: LeagueStore, *entries: RosterEntry) -> None:
    table = store.roster_table(LEAGUE_ID)
    for entry in entries:
        table.put_item(Item=to_dynamo(entry.to_item()))


def raw_roster_item(store: LeagueStore, player_id: str):
    return store.roster_table(LEAGUE_ID).get_item(Key={"player_id": player_id}).get("Item")


@pytest.fixture
def drafted_league(store) -> LeagueStore:
    """A finished draft: each team owns two players."""
    seed_roster(
        store,
        RosterEntry("p1", team_drafted_by="101", draft_time="2026-01-01T10:00:00Z", player_name="Erling Haaland"),
        RosterEntry("p2", team_drafted_by="102", draft_time="2026-01-01T10:01:00Z", player_name="Mohamed Salah"),
        RosterEntry("p3", team_drafted_by="103", draft_time="2026-01-01T10:02:00Z", player_name="Alexander Isak"),
        RosterEntry("p4", team_drafted_by="103", draft_time="2026-01-01T10:03:00Z", player_name="Cole Palmer"),
        RosterEntry("p5", team_drafted_by="102", draft_time="2026-01-01T10:04:00Z", player_name="Bukayo Saka"),
        RosterEntry("p6", team_drafted_by="101", draft_time="2026-01-01T10:05:00Z", player_name="Ollie Watkins"),
    )
    return store
