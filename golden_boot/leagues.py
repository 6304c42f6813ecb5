# golden_boot/leagues.py
"""
League creation.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from golden_boot import sequencer
from golden_boot.dynamo import LeagueStore
from golden_boot.errors import ConflictError, LeagueError, ValidationError
from golden_boot.models import DraftRecord
from golden_boot.utils import require_fields, to_iso, utc_now

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 20


def random_league_id() -> str:
    return str(random.randint(100000, 999999))


def _unused_league_id(store: LeagueStore, id_factory: Callable[[], str]) -> str:
    for _ in range(MAX_ID_ATTEMPTS):
        league_id = id_factory()
        if not store.league_exists(league_id):
            return league_id
        logger.info(f"League id {league_id} already taken, generating another")
    raise LeagueError("Could not allocate a league id. Try again.")


def create_league(store: LeagueStore, league_name: str, fantasy_player_id: Any, commissioner_email: str,
                  draft_order: Optional[List[Any]] = None, now: Optional[datetime] = None,
                  id_factory: Callable[[], str] = random_league_id) -> Dict[str, Any]:
    """Create the settings row, roster table and draft row for a new league.

    The commissioner's fantasy team is linked to the league and, when no
    draft order is given, is the only team in it.
    """
    require_fields(
        {"leagueName": league_name, "fantasyPlayerId": fantasy_player_id, "commissionerEmail": commissioner_email},
        "leagueName", "fantasyPlayerId", "commissionerEmail",
    )
    team_id = str(fantasy_player_id)
    if not team_id.isdigit():
        raise ValidationError("fantasyPlayerId must be numeric.")

    team = store.get_fantasy_team(team_id)
    if team and team.league_id:
        raise ConflictError("Fantasy player is already in a league", {"league_id": team.league_id})

    if draft_order is None:
        order = [team_id]
    elif isinstance(draft_order, list):
        order = [str(member) for member in draft_order]
        sequencer.validate_order(order)
    else:
        raise ValidationError("draftOrder must be an array.")

    created_at = to_iso(now or utc_now())
    league_id = _unused_league_id(store, id_factory)

    store.put_league_settings({
        "leagueId": league_id,
        "leagueName": league_name,
        "commissioner": commissioner_email,
        "createdAt": created_at,
    })
    store.create_roster_table(league_id)
    store.create_draft_record(DraftRecord(
        league_id=league_id,
        draft_order=order,
        current_turn_team=order[0],
    ))
    store.link_fantasy_team(team_id, league_id)

    logger.info(f"Created league {league_id} ({league_name}) for commissioner {commissioner_email}")
    return {
        "message": "League created successfully",
        "leagueId": league_id,
        "leagueName": league_name,
        "commissioner": commissioner_email,
        "createdAt": created_at,
        "draftOrder": order,
    }
