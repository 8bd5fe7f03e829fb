"""Tests for planmaker.stores.answers.AnswerStore."""

from unittest.mock import MagicMock

import pytest

from planmaker.stores.answers import AnswerStore, UNANSWERED_ERROR
from planmaker.utils.storage import JsonFileStorage

PLAN = "plan-1"


class TestSetGetAnswer:
    def test_missing_answer_is_empty_string(self, answer_store):
        assert answer_store.get_answer(PLAN, 0, 0) == ""

    def test_stores_raw_text_verbatim(self, answer_store):
        answer_store.set_answer(PLAN, 0, 1, "  Postgres \n")
        assert answer_store.get_answer(PLAN, 0, 1) == "  Postgres \n"

    def test_no_bounds_checking(self, answer_store):
        answer_store.set_answer(PLAN, 42, 7, "early")
        assert answer_store.get_answer(PLAN, 42, 7) == "early"

    def test_overwrite(self, answer_store):
        answer_store.set_answer(PLAN, 0, 0, "a")
        answer_store.set_answer(PLAN, 0, 0, "b")
        assert answer_store.get_answer(PLAN, 0, 0) == "b"

    @pytest.mark.parametrize("text,expected", [("x", True), ("", False), ("   \t\n", False)])
    def test_is_answered_trims(self, answer_store, text, expected):
        answer_store.set_answer(PLAN, 0, 0, text)
        assert answer_store.is_answered(PLAN, 0, 0) is expected

    def test_switching_plans_drops_previous_answers(self, answer_store):
        answer_store.set_answer("a", 0, 0, "one")
        answer_store.set_answer("b", 0, 0, "two")
        assert answer_store.get_answer("a", 0, 0) == ""
        assert answer_store.get_answer("b", 0, 0) == "two"
        assert answer_store.current_plan_id == "b"

    def test_clear_answers_only_that_plan(self, answer_store):
        answer_store.set_answer(PLAN, 0, 0, "x")
        answer_store.clear_answers(PLAN)
        assert answer_store.get_answers_for_plan(PLAN) == {}
        assert answer_store.current_plan_id is None

    def test_get_answers_for_plan(self, answer_store):
        answer_store.set_answer(PLAN, 0, 0, "x")
        answer_store.set_answer(PLAN, 1, 2, "y")
        assert answer_store.get_answers_for_plan(PLAN) == {(0, 0): "x", (1, 2): "y"}

    def test_reset(self, answer_store):
        answer_store.set_answer(PLAN, 0, 0, "x")
        answer_store.reset()
        assert answer_store.get_answers_for_plan(PLAN) == {}


class TestValidateAnswers:
    def test_example_scenario(self, answer_store, two_specs):
        answer_store.set_answer(PLAN, 0, 0, "Postgres")
        result = answer_store.validate_answers(PLAN, two_specs)
        assert result["is_valid"] is False
        assert result["total_questions"] == 3
        assert result["unanswered_count"] == 2
        assert result["unanswered_by_spec"] == {0: [1], 1: [0]}
        assert [e["question"] for e in result["errors"]] == ["Auth method?", "Which framework?"]
        assert result["errors"][0] == {
            "spec_index": 0,
            "question_index": 1,
            "question": "Auth method?",
            "error": UNANSWERED_ERROR,
        }

    def test_all_answered_is_valid(self, answer_store, two_specs):
        answer_store.set_answer(PLAN, 0, 0, "Postgres")
        answer_store.set_answer(PLAN, 0, 1, "OAuth")
        answer_store.set_answer(PLAN, 1, 0, "FastAPI")
        result = answer_store.validate_answers(PLAN, two_specs)
        assert result["is_valid"] is True
        assert result["unanswered_count"] == 0
        assert result["errors"] == []
        assert result["unanswered_by_spec"] == {}

    @pytest.mark.parametrize("specs", [
        [],
        [{"purpose": "p", "vision": "v"}],
        [{"purpose": "p", "vision": "v", "open_questions": []}],
        [{"purpose": "p", "vision": "v", "open_questions": None}],
    ])
    def test_no_questions_always_valid(self, answer_store, specs):
        result = answer_store.validate_answers(PLAN, specs)
        assert result["is_valid"] is True
        assert result["total_questions"] == 0
        assert result["unanswered_count"] == 0

    def test_whitespace_answer_counts_as_unanswered(self, answer_store):
        specs = [{"purpose": "p", "vision": "v", "open_questions": ["Q?"]}]
        answer_store.set_answer(PLAN, 0, 0, "   ")
        assert answer_store.validate_answers(PLAN, specs)["unanswered_count"] == 1

    def test_answers_for_other_plan_ignored(self, answer_store):
        specs = [{"purpose": "p", "vision": "v", "open_questions": ["Q?"]}]
        answer_store.set_answer("other", 0, 0, "yes")
        assert answer_store.validate_answers(PLAN, specs)["is_valid"] is False

    def test_answers_beyond_declared_questions_ignored(self, answer_store):
        specs = [{"purpose": "p", "vision": "v", "open_questions": ["Q?"]}]
        answer_store.set_answer(PLAN, 0, 5, "stray")
        result = answer_store.validate_answers(PLAN, specs)
        assert result["unanswered_count"] == 1
        assert result["total_questions"] == 1

    def test_idempotent(self, answer_store, two_specs):
        answer_store.set_answer(PLAN, 1, 0, "Django")
        assert answer_store.validate_answers(PLAN, two_specs) == answer_store.validate_answers(PLAN, two_specs)

    def test_spec_without_questions_between_others(self, answer_store):
        specs = [
            {"purpose": "a", "vision": "v", "open_questions": ["Q1"]},
            {"purpose": "b", "vision": "v"},
            {"purpose": "c", "vision": "v", "open_questions": ["Q2"]},
        ]
        result = answer_store.validate_answers(PLAN, specs)
        assert result["unanswered_by_spec"] == {0: [0], 2: [0]}


class TestSubscribe:
    def test_callback_on_mutation(self, answer_store):
        callback = MagicMock()
        answer_store.subscribe(callback)
        answer_store.set_answer(PLAN, 0, 0, "x")
        answer_store.clear_answers(PLAN)
        assert callback.call_count == 2
        callback.assert_called_with(answer_store)

    def test_unsubscribe(self, answer_store):
        callback = MagicMock()
        unsubscribe = answer_store.subscribe(callback)
        unsubscribe()
        answer_store.set_answer(PLAN, 0, 0, "x")
        callback.assert_not_called()


class TestPersistence:
    def test_answers_survive_reload(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        AnswerStore(storage=storage).set_answer(PLAN, 0, 1, "Postgres")
        restored = AnswerStore(storage=JsonFileStorage(tmp_path))
        assert restored.get_answer(PLAN, 0, 1) == "Postgres"
        assert restored.current_plan_id == PLAN

    def test_debounced_until_flush(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        store = AnswerStore(storage=storage, debounce=60)
        store.set_answer(PLAN, 0, 0, "x")
        assert AnswerStore(storage=JsonFileStorage(tmp_path)).get_answer(PLAN, 0, 0) == ""
        store.close()
        assert AnswerStore(storage=JsonFileStorage(tmp_path)).get_answer(PLAN, 0, 0) == "x"

    def test_clearing_everything_removes_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        store = AnswerStore(storage=storage)
        store.set_answer(PLAN, 0, 0, "x")
        store.clear_answers(PLAN)
        assert storage.load("plan-answers") is None

    def test_malformed_records_dropped(self, tmp_path, capsys):
        storage = JsonFileStorage(tmp_path)
        storage.save("plan-answers", [
            {"plan_id": PLAN, "spec_index": 0, "question_index": 0, "answer": "ok"},
            {"plan_id": PLAN, "spec_index": "x", "question_index": 0, "answer": "bad"},
            {"plan_id": PLAN, "spec_index": 1, "question_index": 0, "answer": 5},
            "junk",
        ])
        store = AnswerStore(storage=storage)
        assert store.get_answers_for_plan(PLAN) == {(0, 0): "ok"}
        assert "dropped 3 malformed" in capsys.readouterr().err
