"""
Tests for the reducer (state transitions).

Tests:
- Role assignment
- Location samples
- Card effects
- Question request / answer / expiry cycle
- Ending the game and pruning curses
"""

import dataclasses
import random

import pytest

from ..content.models import Card, Question, QuestionCategory
from ..content.seed import BLIND, DOUBLE_DRAW, EXTRA_MINUTE, FREEZE, TIME_BOOST
from ..engine_core.action import Action, ActionPayload, ActionType
from ..engine_core.patch import Patch, PatchOpType
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import GameStatus, LatLng, MessageType, Role
from ..errors import ErrorCode


class TestAssignRole:
    """Tests for joining a game."""

    def test_first_player_becomes_hider(self, waiting_game, reducer):
        """The first identity takes the hider slot and activates the game."""
        result = reducer.apply(waiting_game, Action.assign_role("alice"))

        assert result.success
        assert result.role == Role.HIDER
        assert result.new_state.hider == "alice"
        assert result.new_state.status == GameStatus.ACTIVE
        assert result.patch.expected_version == waiting_game.version

    def test_second_player_becomes_seeker(self, waiting_game, reducer):
        """Once the hider slot is taken, joiners become seekers."""
        first = reducer.apply(waiting_game, Action.assign_role("alice"))
        second = reducer.apply(first.new_state, Action.assign_role("bob"))

        assert second.role == Role.SEEKER
        assert second.new_state.seekers == ("bob",)
        assert second.new_state.hider == "alice"

    def test_rejoin_is_noop(self, active_game, reducer):
        """An identity that already holds a role gets it back without a write."""
        result = reducer.apply(active_game, Action.assign_role("seeker-1"))

        assert result.success
        assert result.role == Role.SEEKER
        assert not result.mutated
        assert result.new_state.seekers == ("seeker-1",)

    def test_prefer_seeker_leaves_hider_open(self, waiting_game, reducer):
        """A player who asks to seek does not take the empty hider slot."""
        result = reducer.apply(waiting_game, Action.assign_role("bob", Role.SEEKER))

        assert result.role == Role.SEEKER
        assert result.new_state.hider is None

    def test_prefer_hider_when_taken_conflicts(self, active_game, reducer):
        """Asking for a taken hider slot is rejected."""
        result = reducer.apply(active_game, Action.assign_role("carol", Role.HIDER))

        assert not result.success
        assert result.error_code == ErrorCode.ROLE_CONFLICT

    def test_join_ended_game_fails(self, active_game, reducer):
        """New identities cannot join an ended game."""
        ended = reducer.apply(active_game, Action.end_game(0.0)).new_state

        result = reducer.apply(ended, Action.assign_role("carol"))

        assert not result.success
        assert result.error_code == ErrorCode.GAME_ENDED

    def test_existing_member_of_ended_game_keeps_role(self, active_game, reducer):
        """Rejoining an ended game still reports the held role."""
        ended = reducer.apply(active_game, Action.end_game(0.0)).new_state

        result = reducer.apply(ended, Action.assign_role("hider-1"))

        assert result.success
        assert result.role == Role.HIDER


class TestUpdateLocation:
    """Tests for location samples."""

    def test_hider_location(self, active_game, reducer):
        """A hider sample replaces hider_location."""
        position = LatLng(51.5, -0.12)
        result = reducer.apply(active_game, Action.update_location("hider-1", Role.HIDER, position))

        assert result.success
        assert result.new_state.hider_location == position
        assert result.patch.expected_version is None
        assert result.patch.reject_if_ended

    def test_seeker_location_is_keyed_by_user(self, active_game, reducer):
        """A seeker sample only touches that seeker's entry."""
        state = active_game
        for user_id, lat in [("seeker-1", 1.0), ("seeker-2", 2.0)]:
            state = reducer.apply(
                state, Action.update_location(user_id, Role.SEEKER, LatLng(lat, 0.0)),
            ).new_state

        assert state.seeker_locations == {
            "seeker-1": LatLng(1.0, 0.0),
            "seeker-2": LatLng(2.0, 0.0),
        }

    def test_seeker_patch_uses_nested_path(self, active_game, reducer):
        """The patch writes to seeker_locations.<user_id>."""
        result = reducer.apply(
            active_game, Action.update_location("seeker-1", Role.SEEKER, LatLng(1.0, 2.0)),
        )

        assert result.patch.paths() == ["seeker_locations.seeker-1"]

    def test_invalid_role(self, active_game, reducer):
        """Unknown roles are rejected."""
        result = reducer.apply(
            active_game, Action.update_location("seeker-1", "referee", LatLng(0.0, 0.0)),
        )

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_ROLE


class TestPlayCard:
    """Tests for card effects."""

    def test_time_bonus_adds_seconds(self, active_game, reducer):
        """Time bonus cards increase total hiding time."""
        state = reducer.apply(active_game, Action.play_card(EXTRA_MINUTE, 0.0)).new_state
        state = reducer.apply(state, Action.play_card(TIME_BOOST, 0.0)).new_state

        assert state.total_hiding_time == 180

    def test_time_bonus_is_an_increment(self, active_game, reducer):
        """Time bonuses commute, so they carry no version pin."""
        result = reducer.apply(active_game, Action.play_card(EXTRA_MINUTE, 0.0))

        op = result.patch.ops[0]
        assert op.op == PatchOpType.INCREMENT
        assert result.patch.expected_version is None
        assert result.patch.reject_if_ended

    def test_curse_is_appended(self, active_game, reducer, now):
        """Curse cards add an active curse with the card's duration."""
        result = reducer.apply(active_game, Action.play_card(FREEZE, now))

        assert result.success
        curses = result.new_state.active_curses
        assert len(curses) == 1
        assert curses[0].name == FREEZE.name
        assert curses[0].duration == 3
        assert curses[0].timestamp == now

    def test_two_curses_get_distinct_ids(self, active_game, reducer, now):
        """Every curse instance has its own id."""
        state = reducer.apply(active_game, Action.play_card(FREEZE, now)).new_state
        state = reducer.apply(state, Action.play_card(FREEZE, now)).new_state

        ids = {c.curse_id for c in state.active_curses}
        assert len(ids) == 2

    def test_powerup_without_effect_is_noop(self, active_game, reducer):
        """Powerups change nothing unless an effect is registered."""
        result = reducer.apply(active_game, Action.play_card(DOUBLE_DRAW, 0.0))

        assert result.success
        assert not result.mutated
        assert result.new_state == active_game

    def test_registered_powerup_effect(self, active_game):
        """A registered effect contributes its patch."""
        reducer = Reducer(powerup_effects={
            "doubleDraw": lambda game, card: Patch().increment("coins", amount=2),
        })

        result = reducer.apply(active_game, Action.play_card(DOUBLE_DRAW, 0.0))

        assert result.new_state.coins == active_game.coins + 2

    def test_unknown_card_type(self, active_game, reducer):
        """Cards with an unrecognised type are rejected."""
        card = Card(card_id="odd", card_type="mystery", name="Odd")

        result = reducer.apply(active_game, Action.play_card(card, 0.0))

        assert not result.success
        assert result.error_code == ErrorCode.INVALID_CARD_TYPE


class TestQuestions:
    """Tests for the question cycle."""

    def test_request_sets_pending_and_logs_message(self, active_game, reducer, now):
        """Requesting a question stores it and appends a seeker message."""
        result = reducer.apply(active_game, Action.request_question("Matching", now))

        assert result.success
        state = result.new_state
        assert state.pending_question is not None
        assert state.pending_question.category == "Matching"
        assert state.pending_question.expires_at == now + 300
        message = state.chat_messages[-1]
        assert message.message_type == MessageType.QUESTION
        assert message.sender == Role.SEEKER
        assert message.content == state.pending_question.question.question

    def test_category_match_is_case_insensitive(self, active_game, reducer):
        """Category names match regardless of case."""
        result = reducer.apply(active_game, Action.request_question("thermometer", 0.0))

        assert result.success
        assert result.new_state.pending_question.question.category == QuestionCategory.THERMOMETER

    def test_second_request_rejected(self, active_game, reducer):
        """Only one question may be pending."""
        state = reducer.apply(active_game, Action.request_question("Matching", 0.0)).new_state

        result = reducer.apply(state, Action.request_question("Radar", 0.0))

        assert not result.success
        assert result.error_code == ErrorCode.QUESTION_ALREADY_PENDING
        assert result.error == "Please wait for the current question to be answered"

    def test_unknown_category(self, active_game, reducer):
        """A category with no questions is rejected."""
        result = reducer.apply(active_game, Action.request_question("Astrology", 0.0))

        assert not result.success
        assert result.error_code == ErrorCode.NO_QUESTIONS_IN_CATEGORY

    def test_radar_reveals_location(self, active_game, reducer):
        """Radar questions reveal the hider for the configured time."""
        result = reducer.apply(active_game, Action.request_question("Radar", 0.0))

        assert result.reveals_location
        assert result.reveal_seconds == 10
        assert result.new_state.pending_question.reveals_location

    def test_other_types_do_not_reveal(self, active_game, reducer):
        """Non-reveal question types leave the hider hidden."""
        result = reducer.apply(active_game, Action.request_question("Measuring", 0.0))

        assert not result.reveals_location
        assert result.reveal_seconds == 0

    def test_reveal_types_are_configurable(self, active_game):
        """Reveal types come from the reducer's configuration."""
        reducer = Reducer(reveal_types=frozenset({"measuring"}), reveal_seconds=30)

        result = reducer.apply(active_game, Action.request_question("Measuring", 0.0))

        assert result.reveals_location
        assert result.reveal_seconds == 30

    def test_correct_answer_awards_coin(self, active_game, reducer):
        """A correct answer clears the question and adds a coin."""
        asked = reducer.apply(active_game, Action.request_question("Matching", 0.0)).new_state

        result = reducer.apply(asked, Action.answer_question(True, 1.0))

        assert result.success
        state = result.new_state
        assert state.pending_question is None
        assert state.coins == active_game.coins + 1
        answer = state.chat_messages[-1]
        assert answer.message_type == MessageType.ANSWER
        assert answer.sender == Role.HIDER
        assert answer.content == "Correct"

    def test_wrong_answer_awards_nothing(self, active_game, reducer):
        """A wrong answer clears the question without coins."""
        asked = reducer.apply(active_game, Action.request_question("Matching", 0.0)).new_state

        state = reducer.apply(asked, Action.answer_question(False, 1.0)).new_state

        assert state.pending_question is None
        assert state.coins == active_game.coins
        assert state.chat_messages[-1].content == "Incorrect"

    def test_answer_without_pending(self, active_game, reducer):
        """Answering with nothing pending is rejected."""
        result = reducer.apply(active_game, Action.answer_question(True, 0.0))

        assert not result.success
        assert result.error_code == ErrorCode.NO_PENDING_QUESTION

    def test_photo_question_needs_photo(self, active_game, reducer, photo_bank):
        """A correct photo answer without a photo is rejected."""
        asked = reducer.apply(
            active_game, Action.request_question("Photo", 0.0, question_bank=photo_bank),
        ).new_state

        result = reducer.apply(asked, Action.answer_question(True, 1.0))

        assert not result.success
        assert result.error_code == ErrorCode.PHOTO_REQUIRED

    def test_photo_answer_with_url(self, active_game, reducer, photo_bank):
        """A photo answer records a PHOTO message with the URL."""
        asked = reducer.apply(
            active_game, Action.request_question("Photo", 0.0, question_bank=photo_bank),
        ).new_state

        result = reducer.apply(asked, Action.answer_question(True, 1.0, photo_url="memory://p.jpg"))

        assert result.success
        message = result.new_state.chat_messages[-1]
        assert message.message_type == MessageType.PHOTO
        assert message.photo_url == "memory://p.jpg"
        assert result.new_state.coins == active_game.coins + 1

    def test_photo_question_may_be_answered_wrong_without_photo(
        self, active_game, reducer, photo_bank
    ):
        """Declining a photo question needs no photo."""
        asked = reducer.apply(
            active_game, Action.request_question("Photo", 0.0, question_bank=photo_bank),
        ).new_state

        result = reducer.apply(asked, Action.answer_question(False, 1.0))

        assert result.success

    def test_expire_clears_question(self, active_game, reducer):
        """Expiring clears the question with a system message and no coins."""
        asked = reducer.apply(active_game, Action.request_question("Matching", 0.0)).new_state

        result = reducer.apply(asked, Action.expire_question(400.0))

        assert result.success
        assert result.new_state.pending_question is None
        assert result.new_state.coins == active_game.coins
        assert result.new_state.chat_messages[-1].message_type == MessageType.SYSTEM

    def test_question_pick_is_seeded(self, active_game):
        """The same seed picks the same question."""
        picks = {
            Reducer(rng=random.Random(42))
            .apply(active_game, Action.request_question("Matching", 0.0))
            .new_state.pending_question.question.question_id
            for _ in range(5)
        }

        assert len(picks) == 1


class TestEndAndPrune:
    """Tests for ending a game and pruning curses."""

    def test_end_game(self, active_game, reducer):
        """Ending moves the game to its terminal status."""
        result = reducer.apply(active_game, Action.end_game(0.0))

        assert result.success
        assert result.new_state.status == GameStatus.ENDED
        assert result.event.event_type == ActionType.END_GAME

    def test_end_game_twice_is_noop(self, active_game, reducer):
        """Ending an ended game changes nothing."""
        ended = reducer.apply(active_game, Action.end_game(0.0)).new_state

        result = reducer.apply(ended, Action.end_game(1.0))

        assert result.success
        assert not result.mutated

    @pytest.mark.parametrize("action", [
        Action.play_card(EXTRA_MINUTE, 0.0),
        Action.request_question("Matching", 0.0),
        Action.update_location("hider-1", Role.HIDER, LatLng(0.0, 0.0)),
    ])
    def test_ended_game_rejects_commands(self, active_game, reducer, action):
        """Play commands are rejected after the game ends."""
        ended = reducer.apply(active_game, Action.end_game(0.0)).new_state

        result = reducer.apply(ended, action)

        assert not result.success
        assert result.error_code == ErrorCode.GAME_ENDED

    def test_prune_removes_only_expired(self, active_game, reducer, now):
        """Pruning keeps curses that are still running."""
        state = reducer.apply(active_game, Action.play_card(BLIND, now)).new_state
        state = reducer.apply(state, Action.play_card(FREEZE, now)).new_state

        # BLIND lasts 2 minutes, FREEZE 3
        result = reducer.apply(state, Action.prune_curses(now + 150))

        assert result.success
        assert [c.name for c in result.new_state.active_curses] == [FREEZE.name]

    def test_prune_nothing_expired_is_noop(self, active_game, reducer, now):
        """Pruning with nothing expired writes nothing."""
        state = reducer.apply(active_game, Action.play_card(FREEZE, now)).new_state

        result = reducer.apply(state, Action.prune_curses(now + 10))

        assert not result.mutated


class TestApplyAction:
    """Tests for the convenience function."""

    def test_apply_action_with_bank(self, active_game):
        """apply_action uses the given question bank."""
        bank = [Question(
            question_id="only",
            category=QuestionCategory.RADAR,
            question="Within 1km?",
            answer="Yes/No",
        )]

        result = apply_action(active_game, Action.request_question("Radar", 0.0), question_bank=bank)

        assert result.new_state.pending_question.question.question_id == "only"

    def test_rejection_leaves_input_untouched(self, active_game):
        """A rejected command does not change the input game."""
        before = active_game.to_record()

        apply_action(active_game, Action.answer_question(True, 0.0))

        assert active_game.to_record() == before

    def test_payload_fields(self):
        """Payloads only carry the parameters the handlers read."""
        names = {f.name for f in dataclasses.fields(ActionPayload)}

        assert names == {
            "user_id", "role", "preferred_role", "position", "card",
            "category", "question_bank", "correct", "photo_url",
        }
        assert {f.name for f in dataclasses.fields(Action)} == {
            "action_type", "payload", "timestamp",
        }
