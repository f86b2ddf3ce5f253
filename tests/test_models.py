"""Unit tests for goals, character state, world models and topic conversion."""

import json

import pytest
from artifactsfleet import (
    ALL_SKILLS,
    Craft,
    DepositAll,
    Envelope,
    Fight,
    Gather,
    GoalKind,
    Idle,
    Rest,
    SimpleItem,
    TaskTrade,
    Topics,
    goal_identity,
    goal_to_dict,
    stage_key,
    target_key,
)
from artifactsfleet.models.character import skill_type
from artifactsfleet.models.topics import from_nats_subject, to_nats_subject
from pydantic import ValidationError

from tests.factories import make_character, make_item

# --- Goals ---


class TestGoals:
    def test_kind_tags(self):
        assert Gather(resource="copper_rocks").kind == GoalKind.GATHER
        assert DepositAll().kind == GoalKind.DEPOSIT_ALL
        assert TaskTrade().kind == GoalKind.TASK_TRADE

    def test_goals_are_frozen(self):
        goal = Craft(item="copper_bar", quantity=3)
        with pytest.raises(AttributeError):
            goal.quantity = 4  # type: ignore[misc]

    def test_to_dict_tags_type(self):
        assert goal_to_dict(Craft(item="copper_bar", quantity=3)) == {
            "type": "craft",
            "item": "copper_bar",
            "quantity": 3,
        }

    def test_to_dict_drops_missing_party(self):
        assert goal_to_dict(Fight(monster="chicken")) == {"type": "fight", "monster": "chicken"}

    def test_to_dict_party_is_list(self):
        data = goal_to_dict(Fight(monster="king_slime", party=("a", "b", "c")))
        assert data["party"] == ["a", "b", "c"]
        json.dumps(data)

    def test_identity_equal_for_equal_goals(self):
        assert goal_identity(Gather(resource="ash_tree")) == goal_identity(Gather(resource="ash_tree"))

    def test_identity_differs_by_field(self):
        assert goal_identity(Gather(resource="ash_tree")) != goal_identity(
            Gather(resource="copper_rocks")
        )

    def test_is_party(self):
        assert Fight(monster="x", party=("a", "b")).is_party
        assert not Fight(monster="x").is_party


class TestGoalKeys:
    def test_target_key_gather(self):
        assert target_key(Gather(resource="ash_tree")) == "gather:ash_tree"

    def test_target_key_fight(self):
        assert target_key(Fight(monster="cow")) == "fight:cow"

    def test_target_key_none_for_craft(self):
        assert target_key(Craft(item="copper_bar")) is None

    def test_stage_key_craft(self):
        assert stage_key(Craft(item="copper_bar")) == "craft:copper_bar"

    def test_stage_key_none_for_rest(self):
        assert stage_key(Rest()) is None
        assert stage_key(Idle(reason="x")) is None


# --- Character state ---


class TestCharacterState:
    def test_skill_level_combat_is_level(self):
        state = make_character(level=7, mining_level=3)
        assert state.skill_level("combat") == 7
        assert state.skill_level("mining") == 3

    def test_skill_levels_in_declaration_order(self):
        assert tuple(make_character().skill_levels()) == ALL_SKILLS

    def test_inventory_helpers(self):
        state = make_character(
            inventory={"copper_ore": 50, "ash_wood": 48}, inventory_max_items=100
        )
        assert state.total_quantity() == 98
        assert state.used_slots() == 2
        assert state.inventory_count("copper_ore") == 50
        assert state.free_inventory() == 2

    def test_empty_slots_not_held(self):
        state = make_character(inventory=[{"slot": 1, "code": "", "quantity": 0}])
        assert state.held_items() == []
        assert state.used_slots() == 0

    def test_equipped(self):
        state = make_character(weapon_slot="copper_dagger")
        assert state.equipped("weapon") == "copper_dagger"
        assert state.equipped("shield") == ""

    def test_task_helpers(self):
        state = make_character(task="chicken", task_type="monsters", task_progress=3, task_total=10)
        assert state.has_task()
        assert state.task_remaining() == 7
        assert not make_character().has_task()

    def test_extra_fields_ignored(self):
        state = make_character(brand_new_field=1)
        assert not hasattr(state, "brand_new_field")

    def test_skill_type(self):
        assert skill_type("mining") == "gathering"
        assert skill_type("cooking") == "crafting"
        assert skill_type("combat") == "combat"


# --- World ---


class TestWorldModels:
    def test_simple_item_rejects_negative(self):
        with pytest.raises(ValidationError):
            SimpleItem(code="x", quantity=-1)

    def test_item_craft_level(self):
        assert make_item("copper_bar", craft=("mining", 5, {"copper_ore": 10})).craft_level == 5
        assert make_item("copper_ore").craft_level == 0

    def test_item_is_equipment(self):
        assert make_item("copper_ring", type="ring").is_equipment
        assert not make_item("apple", type="consumable").is_equipment


# --- Topics and envelope ---


class TestTopics:
    def test_decisions_topic(self):
        assert Topics.decisions("alice") == "/fleet/decisions/alice"

    def test_to_nats_subject(self):
        assert to_nats_subject("/fleet/decisions/alice") == "fleet.decisions.alice"

    def test_from_nats_subject(self):
        assert from_nats_subject("fleet.decisions.alice") == "/fleet/decisions/alice"

    def test_wildcard(self):
        assert to_nats_subject(Topics.all_decisions()) == "fleet.decisions.>"


class TestEnvelope:
    def test_from_alias(self):
        env = Envelope.model_validate(
            {"from": "alice", "topic": "/fleet/decisions/alice", "type": "decision"}
        )
        assert env.from_agent == "alice"
        assert env.model_dump(by_alias=True)["from"] == "alice"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Envelope.model_validate({"from": "a", "topic": "/t", "type": "nope"})
