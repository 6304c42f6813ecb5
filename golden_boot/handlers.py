# golden_boot/handlers.py
"""
HTTP handlers: pull parameters out of an API Gateway event, run the league
operation and wrap its result in a CORS response. LeagueErrors propagate to
the entrypoint, which maps them to status codes.
"""

from typing import Any, Dict

from golden_boot import draft, leagues, standings, transfers
from golden_boot.dynamo import LeagueStore
from golden_boot.types import LambdaResponse
from golden_boot.utils import create_cors_response, parse_json_body, require_fields


def _league_id(event: Dict[str, Any], body: Dict[str, Any] = None) -> str:
    params = event.get("pathParameters") or {}
    league_id = params.get("league_id") or params.get("leagueId") or (body or {}).get("league_id")
    require_fields({"league_id": league_id}, "league_id")
    return str(league_id)


def _body_id(body: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if body.get(name) not in (None, ""):
            return str(body[name])
    return None


def create_league(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = leagues.create_league(
        store,
        league_name=body.get("leagueName"),
        fantasy_player_id=body.get("fantasyPlayerId"),
        commissioner_email=body.get("commissionerEmail"),
        draft_order=body.get("draftOrder"),
    )
    return create_cors_response(201, result)


# Transfer window

def get_transfer_window(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    return create_cors_response(200, transfers.get_transfer_window(store, _league_id(event)))


def start_transfer_window(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = transfers.start_transfer_window(
        store,
        _league_id(event, body),
        start=body.get("transferWindowStart"),
        end=body.get("transferWindowEnd"),
        max_rounds=body.get("maxRounds", body.get("transfer_max_rounds")),
        snake_order=body.get("snakeOrder", body.get("transfer_snake_order")),
    )
    return create_cors_response(200, result)


def drop_player(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = transfers.drop_player(
        store,
        _league_id(event, body),
        team_id=_body_id(body, "team_id", "fantasy_team_id", "teamId"),
        player_id=_body_id(body, "player_id", "playerId"),
    )
    return create_cors_response(200, result)


def pickup_player(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = transfers.pickup_player(
        store,
        _league_id(event, body),
        team_id=_body_id(body, "team_id", "fantasy_team_id", "teamId"),
        player_id=_body_id(body, "player_id", "playerId"),
    )
    return create_cors_response(200, result)


def advance_transfer_turn(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    return create_cors_response(200, transfers.advance_transfer_turn(store, _league_id(event, body)))


def mark_team_done(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = transfers.mark_team_done(
        store,
        _league_id(event, body),
        team_id=_body_id(body, "team_id", "fantasy_team_id", "teamId"),
    )
    return create_cors_response(200, result)


def get_standings(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    return create_cors_response(200, standings.get_standings(store, _league_id(event)))


# Draft

def get_draft_settings(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    return create_cors_response(200, draft.get_draft_settings(store, _league_id(event)))


def update_draft_settings(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    return create_cors_response(200, draft.update_draft_settings(store, _league_id(event, body), body))


def join_draft_session(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = draft.join_draft_session(store, _league_id(event, body), _body_id(body, "teamId", "team_id"))
    return create_cors_response(200, result)


def draft_player(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    result = draft.draft_player(
        store,
        _league_id(event, body),
        team_id=_body_id(body, "team_id", "team_drafted_by", "teamId"),
        player_id=_body_id(body, "player_id", "playerId"),
    )
    return create_cors_response(200, result)


def reset_draft(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    body = parse_json_body(event)
    return create_cors_response(200, draft.reset_draft(store, _league_id(event, body)))


def list_drafted_players(event: Dict[str, Any], store: LeagueStore) -> LambdaResponse:
    return create_cors_response(200, draft.list_drafted_players(store, _league_id(event)))
