"""Tests for league records and their DynamoDB item conversion."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from golden_boot.errors import ConflictError
from golden_boot.models import (
    DraftRecord,
    Player,
    RosterEntry,
    TransferAction,
    TransferWindowState,
    to_dynamo,
    to_native,
)


def live_draft_item() -> dict:
    """A draft row as the resource API returns it."""
    return {
        "league_id": "1",
        "draft_order": ["101", "102", "103"],
        "draft_status": "completed",
        "current_turn_team": "103",
        "current_round": Decimal("5"),
        "overall_pick": Decimal("15"),
        "numberOfRounds": Decimal("5"),
        "transfer_window_status": "active",
        "transfer_window_start": "2026-03-01T00:00:00Z",
        "transfer_window_end": "2026-03-08T00:00:00Z",
        "transfer_current_turn_team": "102",
        "transfer_round": Decimal("1"),
        "activeTransfers": {
            "102": {"step": "pickup", "droppedPlayerId": "p2", "dropTimestamp": "2026-03-01T10:00:00Z",
                    "goalsAtDrop": Decimal("15")},
        },
        "transfer_actions": [
            {"team": "101", "action": "turn_advanced", "round": Decimal("1"), "timestamp": "2026-03-01T09:00:00Z"},
        ],
    }


class TestConversion:
    """Tests for Decimal/float conversion helpers."""

    def test_to_native(self) -> None:
        assert to_native({"a": Decimal("3"), "b": [Decimal("1.5")], "c": {Decimal("2")}}) == {
            "a": 3, "b": [1.5], "c": [2],
        }

    def test_to_dynamo_keeps_bools(self) -> None:
        assert to_dynamo({"x": 1.5, "y": True, "z": [0.25]}) == {
            "x": Decimal("1.5"), "y": True, "z": [Decimal("0.25")],
        }


class TestDraftRecord:
    """Tests for DraftRecord.from_item/to_item."""

    def test_live_row(self) -> None:
        """Legacy draft_order and Decimal counters load as native values."""
        record = DraftRecord.from_item(live_draft_item())

        assert record.draft_order == ["101", "102", "103"]
        assert record.current_round == 5
        assert isinstance(record.overall_pick, int)
        assert record.draft_snake_order is True
        assert record.state_version == 0
        assert record.transfer.max_rounds == 2
        assert record.transfer.snake_order is False
        assert record.transfer_order == ["101", "102", "103"]
        assert record.transfer.pending_drop("102").goals_at_drop == 15

    def test_legacy_action_shape(self) -> None:
        """Old {team, action, timestamp} log entries map onto TransferAction."""
        action = DraftRecord.from_item(live_draft_item()).transfer.actions[0]
        assert action == TransferAction(
            action_type="turn_advanced", fantasy_team_id="101", round=1, action_date="2026-03-01T09:00:00Z",
        )

    def test_to_item_writes_current_attribute_names(self) -> None:
        item = DraftRecord.from_item(live_draft_item()).to_item()
        assert item["draftOrder"] == ["101", "102", "103"]
        assert "draft_order" not in item
        assert "transferOrder" not in item
        assert item["activeTransfers"]["102"]["droppedPlayerId"] == "p2"
        assert item["transfer_actions"][0]["action_type"] == "turn_advanced"

    def test_transfer_order_override(self) -> None:
        item = dict(live_draft_item(), transferOrder=["103", "101", "102"])
        assert DraftRecord.from_item(item).transfer_order == ["103", "101", "102"]


class TestTransferWindowState:
    """Tests for the transfer state tracker."""

    def test_is_open_at(self) -> None:
        window = TransferWindowState(status="active", start="2026-03-01T00:00:00Z", end="2026-03-08T00:00:00Z")
        assert window.is_open_at(datetime(2026, 3, 2, tzinfo=timezone.utc))
        assert not window.is_open_at(datetime(2026, 2, 28, tzinfo=timezone.utc))
        assert not window.is_open_at(datetime(2026, 3, 9, tzinfo=timezone.utc))

    def test_record_drop_and_clear(self) -> None:
        window = TransferWindowState(status="active", current_turn_team="101")
        window.record_drop("101", "p1", 20, "2026-03-01T10:00:00Z")

        assert window.pending_drop("101").dropped_player_id == "p1"
        assert window.active_transfers_item() == {
            "101": {"step": "pickup", "droppedPlayerId": "p1", "dropTimestamp": "2026-03-01T10:00:00Z",
                    "goalsAtDrop": 20},
        }
        window.clear_after_pickup("101")
        assert window.pending_drop("101") is None

    def test_record_drop_wrong_turn(self) -> None:
        window = TransferWindowState(status="active", current_turn_team="102")
        with pytest.raises(ConflictError) as exc_info:
            window.record_drop("101", "p1", 20, "2026-03-01T10:00:00Z")
        assert exc_info.value.details == {"currentTurn": "102"}

    def test_record_drop_twice(self) -> None:
        window = TransferWindowState(status="active", current_turn_team="101")
        window.record_drop("101", "p1", 20, "2026-03-01T10:00:00Z")
        with pytest.raises(ConflictError):
            window.record_drop("101", "p6", 9, "2026-03-01T10:05:00Z")

    def test_log_action_uses_current_round(self) -> None:
        window = TransferWindowState(round=2)
        action = window.log_action("drop", "101", "2026-03-01T10:00:00Z", "p1", "Erling Haaland")
        assert action.round == 2
        assert window.actions == [action]


class TestRosterEntry:
    """Tests for roster rows."""

    def test_from_item_defaults(self) -> None:
        entry = RosterEntry.from_item({"player_id": "p1", "team_drafted_by": "101"})
        assert entry.dropped is False
        assert entry.picked_up is False
        assert entry.previous_owners == []

    def test_picked_up_inferred_from_timestamp(self) -> None:
        """Rows written before the picked_up flag existed only carry picked_up_at."""
        entry = RosterEntry.from_item({"player_id": "p1", "picked_up_at": "2026-03-01T10:00:00Z",
                                       "goals_before_pickup": Decimal("4")})
        assert entry.picked_up is True
        assert entry.joined_goals == 4

    def test_current_stint(self) -> None:
        entry = RosterEntry("p1", team_drafted_by="101", draft_time="2026-01-01T10:00:00Z",
                            dropped=True, dropped_at="2026-03-01T10:00:00Z", goals_at_drop=20)
        assert entry.current_stint() == {
            "team_id": "101",
            "joined_at": "2026-01-01T10:00:00Z",
            "left_at": "2026-03-01T10:00:00Z",
            "goals_at_join": 0,
            "goals_at_leave": 20,
        }


class TestPlayer:
    def test_from_item(self) -> None:
        player = Player.from_item({"id": "p1", "name": "Erling Haaland", "team": "Manchester City",
                                   "goals_2026": Decimal("20")})
        assert player == Player("p1", "Erling Haaland", "Manchester City", 20)

    def test_missing_goals(self) -> None:
        assert Player.from_item({"id": "p9"}).goals == 0
