from typing import TypedDict, Dict, List, Optional


class LambdaResponse(TypedDict, total=False):
    statusCode: int
    headers: Dict[str, str]
    isBase64Encoded: bool
    body: str


class TransferActionDict(TypedDict, total=False):
    action_type: str
    fantasy_team_id: str
    player_id: Optional[str]
    player_name: Optional[str]
    round: int
    action_date: str


class OwnerStint(TypedDict):
    team_id: str
    joined_at: Optional[str]
    left_at: Optional[str]
    goals_at_join: int
    goals_at_leave: int


class StandingsPlayer(TypedDict, total=False):
    id: str
    name: str
    team: Optional[str]
    goals: int
    transferStatus: str
    joinedDate: Optional[str]
    leftDate: Optional[str]
    totalGoalsAllTime: int
    goalsAtDrop: int
    goalsBeforePickup: int


class StandingsRow(TypedDict):
    FantasyPlayerId: str
    FantasyPlayerName: Optional[str]
    TeamName: Optional[str]
    TeamLogo: Optional[str]
    TotalGoals: int
    Players: List[StandingsPlayer]
