import pytest
from pydantic import ValidationError

import schemas
from access import MEMBER_LIST_ACCESS, USER_ACCESS
from lists import build_registry

ALL_LISTS = {
    "User", "Event", "Game", "GamePlayer", "GameLog",
    "Organization", "Team", "Player", "GameStatSummary",
}


def test_registry_covers_every_list():
    registry = build_registry()
    assert set(registry.keys()) == ALL_LISTS
    assert len(registry) == len(ALL_LISTS)


def test_policies_per_list():
    registry = build_registry()
    assert registry.get("User").access is USER_ACCESS
    for key in ALL_LISTS - {"User"}:
        assert registry.get(key).access is MEMBER_LIST_ACCESS


def test_tracking_everywhere_but_users():
    registry = build_registry()
    assert registry.get("User").tracking is False
    assert all(cfg.tracking for cfg in registry if cfg.key != "User")


def test_registry_is_read_only():
    registry = build_registry()
    with pytest.raises(Exception):
        registry.get("Game").path = "matches"


def test_collection_names_are_lowercase():
    registry = build_registry()
    assert registry.get("GameStatSummary").collection == "gamestatsummary"


def test_describe_marks_secret_and_unique_fields():
    fields = build_registry().get("User").describe()["fields"]
    assert fields["password"]["secret"] is True
    assert fields["email"]["unique"] is True
    assert fields["is_admin"]["required"] is False


def test_update_schema_accepts_empty_payload():
    update = build_registry().get("Game").update_schema
    assert update().model_dump(exclude_unset=True) == {}
    assert update(venue="Páirc Uí Chaoimh").model_dump(exclude_unset=True) == {"venue": "Páirc Uí Chaoimh"}


def test_update_schema_still_checks_game_id():
    update = build_registry().get("GameLog").update_schema
    with pytest.raises(ValidationError):
        update(game_id="not-an-id")


def test_stat_summary_counters_default_to_zero():
    summary = schemas.GameStatSummary(game_id="5f1b2c3d4e5f6a7b8c9d0e1f")
    counters = summary.model_dump(exclude={"game_id"})
    assert len(counters) == 30
    assert set(counters.values()) == {0}


def test_stat_summary_rejects_negative_counters():
    with pytest.raises(ValidationError):
        schemas.GameStatSummary(game_id="5f1b2c3d4e5f6a7b8c9d0e1f", red_cards=-1)


def test_game_defaults():
    game = schemas.Game(opposition="Midleton", venue="Castlelyons")
    assert game.competition == "League"
    assert game.game_logs == []
    assert game.date is None


def test_game_player_requires_object_id():
    with pytest.raises(ValidationError):
        schemas.GamePlayer(game_id="12", number=1, player="x")


def test_update_schema_keeps_constraints():
    registry = build_registry()
    summary_update = registry.get("GameStatSummary").update_schema
    with pytest.raises(ValidationError):
        summary_update(red_cards=-1)
    with pytest.raises(ValidationError):
        registry.get("GamePlayer").update_schema(number=-3)
    assert summary_update(red_cards=2).model_dump(exclude_unset=True) == {"red_cards": 2}


def test_update_schema_rejects_null_for_required_fields():
    registry = build_registry()
    with pytest.raises(ValidationError):
        registry.get("GameStatSummary").update_schema(game_id=None)
    with pytest.raises(ValidationError):
        registry.get("Game").update_schema(opposition=None)
    with pytest.raises(ValidationError):
        registry.get("Team").update_schema(players=None)


def test_user_update_password_cannot_be_null_or_empty():
    update = build_registry().get("User").update_schema
    with pytest.raises(ValidationError):
        update(password=None)
    with pytest.raises(ValidationError):
        update(password="")
    assert update(first_name=None).model_dump(exclude_unset=True) == {"first_name": None}
