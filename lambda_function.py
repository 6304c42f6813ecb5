"""
Golden Boot League Lambda Function
Routes API Gateway requests to the draft, transfer and standings handlers
"""

import json
import logging
import os
import re
from typing import Any, Callable, Dict, Optional, Tuple

from golden_boot import config, handlers
from golden_boot.dynamo import LeagueStore
from golden_boot.errors import LeagueError
from golden_boot.types import LambdaResponse
from golden_boot.utils import create_cors_response

# Configure logging
logger = logging.getLogger()
logger.setLevel(config.LOG_LEVEL)

Handler = Callable[[Dict[str, Any], LeagueStore], LambdaResponse]

ROUTES: Dict[Tuple[str, str], Handler] = {
    ("POST", "/league"): handlers.create_league,
    ("GET", "/league/{league_id}/transfer"): handlers.get_transfer_window,
    ("POST", "/league/{league_id}/transfer/start"): handlers.start_transfer_window,
    ("POST", "/league/{league_id}/transfer/drop"): handlers.drop_player,
    ("POST", "/league/{league_id}/transfer/pickup"): handlers.pickup_player,
    ("POST", "/league/{league_id}/transfer/advance"): handlers.advance_transfer_turn,
    ("POST", "/league/{league_id}/transfer/done"): handlers.mark_team_done,
    ("GET", "/league/{league_id}/standings"): handlers.get_standings,
    ("GET", "/draft/{league_id}"): handlers.get_draft_settings,
    ("POST", "/draft/{league_id}"): handlers.update_draft_settings,
    ("POST", "/draft/{league_id}/join"): handlers.join_draft_session,
    ("POST", "/draft/{league_id}/draft-player"): handlers.draft_player,
    ("POST", "/draft/{league_id}/reset"): handlers.reset_draft,
    ("GET", "/draft/{league_id}/players"): handlers.list_drafted_players,
}


def _path_pattern(resource: str, stage_prefix: bool = False) -> "re.Pattern":
    body = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", resource)
    # Optional leading segment for a stage name such as /prod
    prefix = r"(?:/[^/]+)?" if stage_prefix else ""
    return re.compile(f"^{prefix}{body}/?$")


PATH_PATTERNS = [
    (method, _path_pattern(resource), _path_pattern(resource, stage_prefix=True), handler)
    for (method, resource), handler in ROUTES.items()
]

# Global store instance (for Lambda container reuse)
store = None


def get_store() -> LeagueStore:
    """Get or create the league store"""
    global store
    if store is None:
        store = LeagueStore()
    return store


def request_method(event: Dict[str, Any]) -> str:
    method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if not method and event.get("routeKey", "").count(" ") == 1:
        method = event["routeKey"].split(" ")[0]
    return method.upper()


def resolve_route(event: Dict[str, Any]) -> Tuple[Optional[Handler], Dict[str, str]]:
    """Find the handler for an event and any path parameters taken from the raw path."""
    method = request_method(event)

    route_key = event.get("routeKey")
    if route_key and route_key != "$default":
        route_method, _, resource = route_key.partition(" ")
        handler = ROUTES.get((route_method.upper(), resource))
        if handler:
            return handler, {}

    resource = event.get("resource")
    if resource and (method, resource) in ROUTES:
        return ROUTES[(method, resource)], {}

    path = event.get("rawPath") or event.get("path") or ""
    for stage_prefixed in (False, True):
        for route_method, exact, prefixed, handler in PATH_PATTERNS:
            if route_method != method:
                continue
            match = (prefixed if stage_prefixed else exact).match(path)
            if match:
                return handler, match.groupdict()
    return None, {}


def lambda_handler(event: Dict[str, Any], context: Any) -> LambdaResponse:
    """
    Main Lambda handler for league requests
    """
    logger.info(f"Received event: {json.dumps(event, default=str)}")

    # Handle CORS preflight
    if request_method(event) == "OPTIONS":
        return create_cors_response(200, {"message": "CORS preflight response"})

    handler, path_params = resolve_route(event)
    if handler is None:
        logger.warning(f"No route for {request_method(event)} {event.get('rawPath') or event.get('path')}")
        return create_cors_response(404, {"error": "Not found"})

    if path_params:
        event = dict(event)
        event["pathParameters"] = {**path_params, **(event.get("pathParameters") or {})}

    try:
        return handler(event, get_store())

    except LeagueError as e:
        logger.warning(f"{handler.__name__} rejected request ({e.status_code}): {e.message}")
        return create_cors_response(e.status_code, e.to_body())

    except Exception as e:
        logger.error(f"Error in {handler.__name__}: {str(e)}", exc_info=True)
        return create_cors_response(500, {"error": "Internal server error", "details": str(e)})


def warm_lambda():
    """
    Warm up the Lambda function by initializing the store
    """
    try:
        logger.info("Warming up Lambda function...")
        get_store()
        logger.info("Lambda function warmed up successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to warm up Lambda: {str(e)}")
        return False


# Warm up on module import for faster cold starts
if os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
    warm_lambda()
