"""
Database Schemas for Team Corner

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercase of the class name.

Collections:
- user
- event
- organization
- team
- game
- gameplayer
- gamelog
- gamestatsummary
- player

Relationships are stored as stringified ObjectIds. `game_id` on GamePlayer,
GameLog and GameStatSummary is a loose reference: only its format is checked.
"""

from datetime import date, datetime
from typing import Annotated, List, Optional, Tuple, Type, Union, get_args, get_origin

from bson import ObjectId
from pydantic import BaseModel, Field, create_model, field_validator

CalendarDay = date

# -----------------------------
# Helpers
# -----------------------------


def _check_object_id(value: Optional[str]) -> Optional[str]:
    if value is not None and not ObjectId.is_valid(value):
        raise ValueError("must be a 24 character hex ObjectId")
    return value


def partial_model(model: Type[BaseModel], non_nullable: Tuple[str, ...] = ()) -> Type[BaseModel]:
    """Copy of `model` for PATCH payloads: every field may be left out.

    Fields keep their constraints. A field only accepts an explicit null if
    its type already allows None and it is not listed in `non_nullable`.
    """
    fields = {}
    for name, info in model.model_fields.items():
        annotation = info.annotation
        if name in non_nullable:
            annotation = _strip_none(annotation)
        if info.metadata:
            annotation = Annotated[(annotation, *info.metadata)]
        fields[name] = (annotation, Field(None, description=info.description))
    return create_model(f"{model.__name__}Update", __base__=model, **fields)


def _strip_none(annotation):
    if get_origin(annotation) is Union:
        args = tuple(a for a in get_args(annotation) if a is not type(None))
        return Union[args] if len(args) > 1 else args[0]
    return annotation


def counter(label: str):
    return Field(0, ge=0, description=label)


# -----------------------------
# Core Domain Schemas
# -----------------------------

class User(BaseModel):
    first_name: Optional[str] = Field(None, description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    email: Optional[str] = Field(None, description="Login email, unique across users")
    is_admin: bool = Field(False, description="Admin privileges (admin-only to change)")
    is_member: bool = Field(False, description="Club member, can read club data")
    password: Optional[str] = Field(None, min_length=1, description="Password (stored hashed, never returned)")


class Event(BaseModel):
    event_type: str = Field(..., description="Kind of event, e.g. training")
    date_time: Optional[datetime] = Field(None, description="When the event takes place")
    location: Optional[str] = Field(None, description="Where the event takes place")
    notes: Optional[str] = Field(None, description="Free-form notes")


class Organization(BaseModel):
    name: str = Field(..., description="Club or organization name")
    web_site: Optional[str] = Field(None, description="Public web site URL")
    teams: List[str] = Field(default_factory=list, description="Team ids")
    users: List[str] = Field(default_factory=list, description="User ids")


class Team(BaseModel):
    name: str = Field(..., description="Team name")
    organization: Optional[str] = Field(None, description="Organization id")
    users: List[str] = Field(default_factory=list, description="User ids")
    players: List[str] = Field(default_factory=list, description="Player ids")
    games: List[str] = Field(default_factory=list, description="Game ids")


class Game(BaseModel):
    team: Optional[str] = Field(None, description="Team id")
    competition: str = Field("League", description="Competition name")
    opposition: str = Field(..., description="Opposing team name")
    venue: str = Field(..., description="Venue")
    date: Optional[CalendarDay] = Field(None, description="Day the game is played")
    game_logs: List[str] = Field(default_factory=list, description="GameLog ids")
    game_stat_summary: Optional[str] = Field(None, description="GameStatSummary id")
    game_line_out: List[str] = Field(default_factory=list, description="GamePlayer ids")


class GamePlayer(BaseModel):
    game_id: str = Field(..., description="Game id (stringified ObjectId)")
    number: int = Field(..., ge=0, description="Jersey number")
    player: str = Field(..., description="Player id")

    @field_validator("game_id")
    @classmethod
    def check_game_id(cls, value):
        return _check_object_id(value)


class GameLog(BaseModel):
    team: str = Field(..., description="Team the event is credited to")
    player_number: str = Field(..., description="Jersey number of the player")
    player_name: str = Field(..., description="Player name")
    stat: str = Field(..., description="Stat type, e.g. point, wide, turnover won")
    game_time_min: str = Field(..., description="Game clock minute")
    game_time_sec: str = Field(..., description="Game clock second")
    formatted_time: str = Field(..., description="Game clock as mm:ss")
    half: str = Field(..., description="Half of the game")
    game_id: str = Field(..., description="Game id (stringified ObjectId)")
    x: Optional[str] = Field(None, description="Pitch x coordinate")
    y: Optional[str] = Field(None, description="Pitch y coordinate")

    @field_validator("game_id")
    @classmethod
    def check_game_id(cls, value):
        return _check_object_id(value)


class GameStatSummary(BaseModel):
    goals_for_self: int = counter("Goals for us")
    points_for_self: int = counter("Points for us")
    goals_for_opposition: int = counter("Goals for the opposition")
    points_for_opposition: int = counter("Points for the opposition")
    hook_block: int = counter("Hooks & Blocks")
    turnover: int = counter("Turnovers")
    turnover_won: int = counter("Turnovers Won")
    turnover_lost: int = counter("Turnovers Lost")
    interception: int = counter("Interceptions")
    loose_ball: int = counter("Loose Balls won by us")
    home_puckout_won_h1: int = counter("Our puckouts won by us in the First Half")
    home_puckout_lost_h1: int = counter("Our puckouts won by the opposition in the First Half")
    home_puckout_won_h2: int = counter("Our puckouts won by us in the Second Half")
    home_puckout_lost_h2: int = counter("Our puckouts won by the opposition in the Second Half")
    opposition_puckout_won_h1: int = counter("Opposition puckouts won by us in the First Half")
    opposition_puckout_lost_h1: int = counter("Opposition puckouts won by the opposition in the First Half")
    opposition_puckout_won_h2: int = counter("Opposition puckouts won by us in the Second Half")
    opposition_puckout_lost_h2: int = counter("Opposition puckouts won by the opposition in the Second Half")
    scores_from_play_h1: int = counter("Scores from play in the First Half")
    shots_from_play_h1: int = counter("Shots from play in the First Half")
    scores_from_play_h2: int = counter("Scores from play in the Second Half")
    shots_from_play_h2: int = counter("Shots from play in the Second Half")
    scores_from_frees: int = counter("Scores from frees")
    shots_from_frees: int = counter("Shots from frees")
    scores_from_65s: int = counter("Scores from 65s")
    shots_from_65s: int = counter("Shots from 65s")
    frees_won: int = counter("Frees won by us")
    frees_conceded: int = counter("Frees conceded by us")
    yellow_cards: int = counter("Yellow cards for us")
    red_cards: int = counter("Red cards for us")
    game_id: str = Field(..., description="Game id (stringified ObjectId)")

    @field_validator("game_id")
    @classmethod
    def check_game_id(cls, value):
        return _check_object_id(value)


class Player(BaseModel):
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")

# Note: GET /schema introspects these through the list registry.
