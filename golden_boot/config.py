# golden_boot/config.py
"""
Environment-driven settings for the league Lambda.
"""

import os

AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")

DRAFT_TABLE = os.environ.get("DRAFT_TABLE", "Draft")
PLAYERS_TABLE = os.environ.get("PLAYERS_TABLE", "Players_2026")
PLAYER_GOALS_ATTRIBUTE = os.environ.get("PLAYER_GOALS_ATTRIBUTE", "goals_2026")
FANTASY_PLAYERS_TABLE = os.environ.get("FANTASY_PLAYERS_TABLE", "Fantasy_Players")
LEAGUE_TABLE = os.environ.get("LEAGUE_TABLE", "League_Settings")
LEAGUE_TABLE_PREFIX = os.environ.get("LEAGUE_TABLE_PREFIX", "League_")

DEFAULT_DRAFT_ROUNDS = int(os.environ.get("DEFAULT_DRAFT_ROUNDS", "5"))
DEFAULT_TRANSFER_MAX_ROUNDS = int(os.environ.get("DEFAULT_TRANSFER_MAX_ROUNDS", "2"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def league_table_name(league_id: str) -> str:
    """Roster table for a league, e.g. League_1."""
    return f"{LEAGUE_TABLE_PREFIX}{league_id}"
