"""Tests for raw session data → SessionPlan."""

import pytest

from rep_runner.core.models import SessionKind
from rep_runner.core.plan_loader import PlanFormatError, load, load_item, parse_rep_target


class TestParseRepTarget:
    def test_integer_reps(self):
        target = parse_rep_target(12)
        assert target.kind == "reps"
        assert target.value == "12"
        assert target.label == "12 reps"

    def test_max_and_ranges(self):
        assert parse_rep_target("max").label == "max reps"
        assert parse_rep_target("8-12").label == "8-12 reps"

    def test_free_text_kept(self):
        assert parse_rep_target("to failure").label == "to failure"

    def test_time_suffix(self):
        target = parse_rep_target("30s")
        assert target.is_timed
        assert target.seconds == 30
        assert target.label == "30s"

    def test_time_mapping(self):
        target = parse_rep_target({"type": "time", "seconds": 7})
        assert target.is_timed
        assert target.seconds == 7

    def test_reps_mapping(self):
        assert parse_rep_target({"type": "reps", "value": 10}).value == "10"

    def test_missing_is_free(self):
        assert parse_rep_target(None).label == "free reps"


class TestLoadItem:
    def test_camel_case_wire_shape(self):
        item = load_item({
            "exerciseId": "ex1",
            "exerciseName": "Pull-ups",
            "muscleGroup": "back",
            "sets": 4,
            "reps": "max",
            "restSeconds": 105,
        })
        assert item.exercise_id == "ex1"
        assert item.display_name == "Pull-ups"
        assert item.muscle_group == "back"
        assert item.set_count == 4
        assert item.rest_seconds == 105

    def test_snake_case_yaml_shape(self):
        item = load_item({"exercise_id": "dips", "display_name": "Dips", "set_count": 3, "rest_seconds": 60})
        assert (item.exercise_id, item.display_name, item.set_count, item.rest_seconds) == ("dips", "Dips", 3, 60)

    def test_defaults(self):
        item = load_item({}, index=2)
        assert item.exercise_id == "item_3"
        assert item.set_count == 1
        assert item.rest_seconds is None

    def test_bad_numbers_fall_back(self):
        item = load_item({"name": "Squats", "sets": "lots", "rest": -5})
        assert item.set_count == 1
        assert item.rest_seconds is None


class TestLoad:
    def test_round_count_defaults_to_one(self):
        plan = load({"id": "s1", "name": "Circuit", "type": "circuit", "items": [{"name": "a"}]})
        assert plan.kind is SessionKind.CIRCUIT
        assert plan.round_count == 1
        assert plan.total_rounds == 1

    def test_circuit_rounds_and_session_rests(self):
        plan = load({
            "id": "c",
            "slug": "chest",
            "name": "Chest",
            "type": "circuit",
            "rounds": 3,
            "restBetweenExercisesSeconds": 30,
            "restBetweenRoundsSeconds": 120,
            "items": [{"name": "a"}, {"name": "b"}],
        })
        assert plan.slug == "chest"
        assert plan.total_rounds == 3
        assert plan.inter_exercise_rest_seconds == 30
        assert plan.inter_round_rest_seconds == 120
        assert plan.total_planned_sets == 6

    def test_empty_items_accepted(self):
        plan = load({"id": "empty", "name": "Empty", "items": []})
        assert plan.is_empty
        assert plan.total_planned_sets == 0

    def test_missing_items_accepted(self):
        assert load({"id": "x"}).is_empty

    def test_non_mapping_items_skipped(self):
        plan = load({"id": "x", "items": [{"name": "a"}, "junk", None]})
        assert len(plan.items) == 1

    @pytest.mark.parametrize("items", [5, "pull-ups", {"name": "a"}, True])
    def test_non_list_items_give_empty_plan(self, items):
        plan = load({"id": "x", "items": items})
        assert plan.is_empty

    def test_unknown_kind_is_classic(self):
        assert load({"id": "x", "kind": "tabata"}).kind is SessionKind.CLASSIC

    def test_zero_rounds_is_one(self):
        assert load({"id": "x", "kind": "circuit", "rounds": 0}).round_count == 1

    def test_non_mapping_raises(self):
        with pytest.raises(PlanFormatError):
            load(["not", "a", "session"])
