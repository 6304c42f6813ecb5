# golden_boot/standings.py
"""
Golden Boot standings.

A team is credited only with goals a player scored while that team owned
him. The players table holds season totals, so each ownership stint is
measured against the goal snapshots taken at pickup and at drop.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from golden_boot.dynamo import LeagueStore
from golden_boot.models import FantasyTeam, Player, RosterEntry
from golden_boot.types import StandingsPlayer, StandingsRow

logger = logging.getLogger(__name__)


def stint_goals(entry: RosterEntry, season_goals: int) -> Tuple[int, str]:
    """Goals and transfer status for the current owner's stint."""
    if entry.picked_up and entry.dropped:
        return max(0, entry.goals_at_drop - entry.goals_before_pickup), "Transferred In/Out"
    if entry.picked_up:
        return max(0, season_goals - entry.goals_before_pickup), "Transferred In"
    if entry.dropped:
        return entry.goals_at_drop, "Transferred Out"
    return season_goals, "Original"


def player_contributions(entry: RosterEntry, player: Optional[Player]) -> List[Tuple[str, StandingsPlayer]]:
    """(team id, standings line) for every team that owned the player."""
    season_goals = player.goals if player else 0
    name = player.name if player else (entry.player_name or f"Player {entry.player_id}")
    club = player.club if player else None

    lines: List[Tuple[str, StandingsPlayer]] = []
    for stint in entry.previous_owners:
        lines.append((stint["team_id"], {
            "id": entry.player_id,
            "name": name,
            "team": club,
            "goals": max(0, stint["goals_at_leave"] - stint["goals_at_join"]),
            "transferStatus": "Transferred Out",
            "joinedDate": stint["joined_at"],
            "leftDate": stint["left_at"],
            "totalGoalsAllTime": season_goals,
            "goalsAtDrop": stint["goals_at_leave"],
            "goalsBeforePickup": stint["goals_at_join"],
        }))

    if entry.team_drafted_by:
        goals, status = stint_goals(entry, season_goals)
        lines.append((entry.team_drafted_by, {
            "id": entry.player_id,
            "name": name,
            "team": club,
            "goals": goals,
            "transferStatus": status,
            "joinedDate": entry.picked_up_at if entry.picked_up else entry.draft_time,
            "leftDate": entry.dropped_at if entry.dropped else None,
            "totalGoalsAllTime": season_goals,
            "goalsAtDrop": entry.goals_at_drop,
            "goalsBeforePickup": entry.goals_before_pickup,
        }))
    return lines


def build_standings(teams: Iterable[FantasyTeam], roster: Iterable[RosterEntry],
                    players: Mapping[str, Player]) -> List[StandingsRow]:
    """Aggregate roster stints into one row per fantasy team, highest total first."""
    rows: Dict[str, StandingsRow] = {}
    for team in teams:
        rows[team.team_id] = {
            "FantasyPlayerId": team.team_id,
            "FantasyPlayerName": team.owner_name,
            "TeamName": team.team_name,
            "TeamLogo": team.logo,
            "TotalGoals": 0,
            "Players": [],
        }

    for entry in roster:
        for team_id, line in player_contributions(entry, players.get(entry.player_id)):
            row = rows.get(team_id)
            if row is None:
                logger.warning(f"Roster row {entry.player_id} credits team {team_id}, which is not in the league")
                continue
            row["Players"].append(line)
            row["TotalGoals"] += line["goals"]

    for row in rows.values():
        row["Players"].sort(key=lambda line: line["goals"], reverse=True)
    return sorted(rows.values(), key=lambda row: row["TotalGoals"], reverse=True)


def get_standings(store: LeagueStore, league_id: str) -> List[StandingsRow]:
    teams = store.list_fantasy_teams(league_id)
    roster = store.list_roster(league_id)
    players = store.list_players()
    logger.info(f"Computing standings for league {league_id}: {len(teams)} teams, {len(roster)} roster rows")
    return build_standings(teams, roster, players)
