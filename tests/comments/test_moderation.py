"""Tests for the comment moderation state machine."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from inkwell.comments.moderation import apply_flag, apply_moderation
from inkwell.core.exceptions import AlreadyFlaggedError, InvalidArgumentError


NOW = datetime(2026, 1, 1, tzinfo=UTC)


class TestApplyFlag:
    def test_first_flag_moves_active_to_flagged(self) -> None:
        user = uuid4()

        changes = apply_flag({"status": "active", "flagged_by": {}}, user, "spam", NOW)

        assert changes["status"] == "flagged"
        assert changes["flagged_by"] == {user: ("spam", NOW)}

    def test_second_user_keeps_flagged_status(self) -> None:
        first, second = uuid4(), uuid4()
        document = {"status": "flagged", "flagged_by": {first: ("spam", NOW)}}

        changes = apply_flag(document, second, "other", NOW)

        assert "status" not in changes
        assert set(changes["flagged_by"]) == {first, second}

    def test_flag_on_hidden_comment_is_recorded_without_status_change(self) -> None:
        changes = apply_flag({"status": "hidden", "flagged_by": None}, uuid4(), "spam", NOW)

        assert "status" not in changes
        assert len(changes["flagged_by"]) == 1

    def test_same_user_cannot_flag_twice(self) -> None:
        user = uuid4()
        with pytest.raises(AlreadyFlaggedError):
            apply_flag({"status": "flagged", "flagged_by": {user: ("spam", NOW)}}, user, "other")

    def test_unknown_reason(self) -> None:
        with pytest.raises(InvalidArgumentError):
            apply_flag({"status": "active"}, uuid4(), "rude")


class TestApplyModeration:
    @pytest.mark.parametrize("status", ["active", "hidden"])
    def test_active_and_hidden_clear_flags(self, status: str) -> None:
        document = {"status": "flagged", "flagged_by": {uuid4(): ("spam", NOW)}}

        changes = apply_moderation(document, status, NOW)

        assert changes == {"status": status, "flagged_by": {}, "updated_at": NOW}

    def test_flagged_keeps_flags(self) -> None:
        changes = apply_moderation({"status": "active"}, "flagged", NOW)

        assert changes == {"status": "flagged", "updated_at": NOW}

    def test_unknown_status(self) -> None:
        with pytest.raises(InvalidArgumentError):
            apply_moderation({"status": "active"}, "removed")
