"""
Error taxonomy for league operations.

Operations raise these; the handler layer maps them to HTTP responses.
"""

from typing import Any, Dict, Optional


class LeagueError(Exception):
    """Base exception for league operations."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.message}
        body.update(self.details)
        return body


class ValidationError(LeagueError):
    """Raised for missing or malformed request fields."""

    status_code = 400


class TeamNotInOrderError(ValidationError):
    """Raised when a team id does not appear in the draft order."""

    def __init__(self, team_id: Optional[str]):
        super().__init__(
            f"Team {team_id} not found in draft order.",
            {"team_id": team_id},
        )
        self.team_id = team_id


class NotFoundError(LeagueError):
    """Raised when a league or draft record does not exist."""

    status_code = 404


class ConflictError(LeagueError):
    """Raised when a write loses to the current league state (wrong turn, taken player, stale read)."""

    status_code = 409
