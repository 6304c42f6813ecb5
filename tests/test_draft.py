"""Tests for draft-phase operations against an emulated DynamoDB."""

import pytest

from conftest import LEAGUE_ID, NOW, TEAMS, raw_roster_item, seed_draft, seed_roster
from golden_boot import draft
from golden_boot.errors import ConflictError, NotFoundError, TeamNotInOrderError, ValidationError
from golden_boot.models import RosterEntry


class TestDraftPlayer:
    """Tests for draft_player."""

    def test_pick_advances_pointer(self, store) -> None:
        """A pick writes the roster row and hands the turn to the next team."""
        seed_draft(store, draft_status="in_progress")

        result = draft.draft_player(store, LEAGUE_ID, "101", "p1", now=NOW)

        assert result["draft"] == {
            "completed": False, "status": "in_progress", "pick": 1,
            "currentTurn": "102", "round": 1, "overallPick": 2,
        }
        item = raw_roster_item(store, "p1")
        assert item["team_drafted_by"] == "101"
        assert item["player_name"] == "Erling Haaland"
        assert item["draft_time"] == "2026-03-01T12:00:00Z"

        record = store.get_draft_record(LEAGUE_ID)
        assert record.current_turn_team == "102"
        assert record.drafted_players == ["p1"]
        assert record.state_version == 1

    def test_snake_draft_to_completion(self, store) -> None:
        """Two snake rounds run 101, 102, 103, 103, 102, 101 and then close the draft."""
        seed_draft(store, number_of_rounds=2)
        picks = [("101", "p1"), ("102", "p2"), ("103", "p3"), ("103", "p4"), ("102", "p5"), ("101", "p6")]

        for team_id, player_id in picks:
            result = draft.draft_player(store, LEAGUE_ID, team_id, player_id, now=NOW)

        assert result["draft"]["completed"] is True
        record = store.get_draft_record(LEAGUE_ID)
        assert record.draft_status == "completed"
        assert record.drafted_players == [player_id for _, player_id in picks]
        with pytest.raises(ConflictError, match="complete"):
            draft.draft_player(store, LEAGUE_ID, "101", "p7", now=NOW)

    def test_wrong_turn(self, store) -> None:
        seed_draft(store)
        with pytest.raises(ConflictError) as exc_info:
            draft.draft_player(store, LEAGUE_ID, "102", "p1", now=NOW)
        assert exc_info.value.details == {"currentTurn": "101"}
        assert raw_roster_item(store, "p1") is None

    def test_player_already_drafted(self, store) -> None:
        """A taken player fails the whole pick and leaves the pointer where it was."""
        seed_draft(store)
        seed_roster(store, RosterEntry("p1", team_drafted_by="103", draft_time="2026-01-01T10:00:00Z"))

        with pytest.raises(ConflictError, match="already been drafted"):
            draft.draft_player(store, LEAGUE_ID, "101", "p1", now=NOW)

        record = store.get_draft_record(LEAGUE_ID)
        assert record.current_turn_team == "101"
        assert record.state_version == 0
        assert raw_roster_item(store, "p1")["team_drafted_by"] == "103"

    def test_unknown_player(self, store) -> None:
        seed_draft(store)
        with pytest.raises(NotFoundError):
            draft.draft_player(store, LEAGUE_ID, "101", "nobody", now=NOW)

    def test_not_started(self, store) -> None:
        seed_draft(store, draft_start_time="2026-03-02T00:00:00Z")
        with pytest.raises(ConflictError, match="not started"):
            draft.draft_player(store, LEAGUE_ID, "101", "p1", now=NOW)

    def test_turn_team_missing_from_order(self, store) -> None:
        seed_draft(store, current_turn_team="999")
        with pytest.raises(TeamNotInOrderError):
            draft.draft_player(store, LEAGUE_ID, "999", "p1", now=NOW)

    def test_stale_pointer(self, store, monkeypatch) -> None:
        """A pick computed from an outdated draft row is rejected."""
        seed_draft(store)
        stale = store.get_draft_record(LEAGUE_ID)
        draft.draft_player(store, LEAGUE_ID, "101", "p1", now=NOW)

        monkeypatch.setattr(store, "get_draft_record", lambda league_id: stale)
        with pytest.raises(ConflictError, match="Refresh"):
            draft.draft_player(store, LEAGUE_ID, "101", "p2", now=NOW)
        assert raw_roster_item(store, "p2") is None

    def test_missing_league(self, store) -> None:
        with pytest.raises(NotFoundError):
            draft.draft_player(store, "404", "101", "p1", now=NOW)


class TestSettings:
    """Tests for get/update draft settings."""

    def test_update_whitelisted_fields(self, store) -> None:
        seed_draft(store)
        result = draft.update_draft_settings(store, LEAGUE_ID, {
            "numberOfRounds": 3,
            "draftStartTime": "2026-03-01T18:00:00Z",
            "draft_snake_order": False,
            "ignored": "value",
        })

        updated = result["updatedAttributes"]
        assert updated["numberOfRounds"] == 3
        assert updated["draftStartTime"] == "2026-03-01T18:00:00Z"
        assert updated["draft_snake_order"] is False
        assert "ignored" not in updated
        assert updated["state_version"] == 1

    def test_append_to_draft_order(self, store) -> None:
        seed_draft(store)
        result = draft.update_draft_settings(store, LEAGUE_ID, {"appendToDraftOrder": "104"})
        assert result["updatedAttributes"]["draftOrder"] == TEAMS + ["104"]

    @pytest.mark.parametrize("body", [
        {"numberOfRounds": 0},
        {"numberOfRounds": "5"},
        {"draftOrder": ["101", "101"]},
        {"draftOrder": []},
        {"transfer_window_status": "paused"},
        {"draftStartTime": "tomorrow"},
        {"appendToDraftOrder": "101"},
        {},
    ])
    def test_rejects_invalid_values(self, store, body) -> None:
        seed_draft(store)
        with pytest.raises(ValidationError):
            draft.update_draft_settings(store, LEAGUE_ID, body)

    def test_turn_team_must_be_in_order(self, store) -> None:
        seed_draft(store)
        with pytest.raises(TeamNotInOrderError):
            draft.update_draft_settings(store, LEAGUE_ID, {"current_turn_team": "999"})

    def test_get_settings(self, store) -> None:
        seed_draft(store)
        settings = draft.get_draft_settings(store, LEAGUE_ID)
        assert settings["draftOrder"] == TEAMS
        assert settings["current_turn_team"] == "101"


class TestJoinAndReset:
    """Tests for join_draft_session, reset_draft and list_drafted_players."""

    def test_join_is_idempotent(self, store) -> None:
        seed_draft(store)
        first = draft.join_draft_session(store, LEAGUE_ID, "101")
        second = draft.join_draft_session(store, LEAGUE_ID, "101")

        assert first["activeParticipants"] == ["101"]
        assert second["message"] == "Team already joined"
        assert store.get_draft_record(LEAGUE_ID).active_participants == ["101"]

    def test_reset(self, drafted_league) -> None:
        store = drafted_league
        seed_draft(store, draft_status="completed", current_turn_team="103", current_round=2, overall_pick=6,
                   drafted_players=["p1", "p2", "p3", "p4", "p5", "p6"])

        result = draft.reset_draft(store, LEAGUE_ID)

        assert result["deletedPlayers"] == 6
        assert result["resetRosters"] == 3
        assert store.list_roster(LEAGUE_ID) == []
        record = store.get_draft_record(LEAGUE_ID)
        assert (record.draft_status, record.current_turn_team, record.current_round, record.overall_pick) == (
            "in_progress", "101", 1, 1,
        )
        assert record.drafted_players == []
        assert record.state_version == 1

    def test_list_drafted_players_in_pick_order(self, drafted_league) -> None:
        players = draft.list_drafted_players(drafted_league, LEAGUE_ID)
        assert [p["player_id"] for p in players] == ["p1", "p2", "p3", "p4", "p5", "p6"]
