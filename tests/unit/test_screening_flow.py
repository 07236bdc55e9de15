"""
Unit Tests for the Screening State Machine

Tests step order, attention-check gating, the two-attempt readiness check,
terminal states and the exit/completion boundary.
"""

import pytest
import sys
import os

# Add oTree project dir to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "prestudy_screening"))

from screening_content import catalog
from screening_flow import (
    CheckResult, ExitReason, ExitRouter, ScreeningSession, SessionState, Step,
    INCOMPLETE_MSG, RETRY_MSG,
    advance, answer_comprehension, apply_action, back, completion_payload,
    exit_urls, select_attention, set_demographic, start, toggle_ai_use, view_for,
)


# ---- helpers
def at_attention1(condition="baseline"):
    return advance(start(condition))


def at_attention2(attention1="2", condition="baseline"):
    state = select_attention(at_attention1(condition), 1, attention1)
    state = advance(state)   # -> demographics2
    return advance(state)    # -> attention2


def at_comprehension(condition="baseline"):
    state = select_attention(at_attention2(condition=condition), 2, "disagree")
    state = advance(state)   # -> tutorial
    return advance(state)    # -> comprehension


def answer_all(state, wrong=False):
    for q in catalog(state.condition).questions:
        index = (q.correct_index + 1) % len(q.options) if wrong else q.correct_index
        state = answer_comprehension(state, q.id, index)
    return state


class TestStart:

    def test_initial_snapshot(self):
        state = start("relation")
        assert state.step == Step.DEMOGRAPHICS1
        assert state.attention1 == CheckResult.UNKNOWN
        assert state.attention2 == CheckResult.UNKNOWN
        assert state.comprehension_attempts == 0
        assert state.comprehension_answers == {}
        assert state.exit_reason is None

    def test_unresolved_condition_rejected(self):
        with pytest.raises(ValueError):
            start("Token")


class TestForwardAndBack:

    def test_demographics_advance_without_answers(self):
        assert advance(start("baseline")).step == Step.ATTENTION1

    def test_back_targets(self):
        state = at_attention1()
        assert back(state).step == Step.DEMOGRAPHICS1
        state = at_attention2()
        assert back(state).step == Step.DEMOGRAPHICS2
        state = at_comprehension()
        assert back(state).step == Step.TUTORIAL

    def test_no_back_elsewhere(self):
        state = start("baseline")
        assert back(state) is state
        tutorial = advance(select_attention(at_attention2(), 2, "disagree"))
        assert tutorial.step == Step.TUTORIAL
        assert back(tutorial) is tutorial

    def test_back_keeps_answers(self):
        state = at_comprehension()
        state = answer_comprehension(state, "b-q1", 2)
        state = advance(back(state))
        assert state.comprehension_answers == {"b-q1": 2}

    def test_transitions_return_new_snapshots(self):
        state = start("baseline")
        nxt = advance(state)
        assert state.step == Step.DEMOGRAPHICS1
        assert nxt is not state


class TestAttentionChecks:

    def test_attention1_empty_is_inert(self):
        state = at_attention1()
        assert advance(state) is state
        assert state.attention1 == CheckResult.UNKNOWN

    def test_attention1_pass(self):
        state = advance(select_attention(at_attention1(), 1, "2"))
        assert state.attention1 == CheckResult.PASSED
        assert state.step == Step.DEMOGRAPHICS2

    @pytest.mark.parametrize("answer", ["1", "3", "4", "5"])
    def test_attention1_fail_still_advances(self, answer):
        state = advance(select_attention(at_attention1(), 1, answer))
        assert state.attention1 == CheckResult.FAILED
        assert state.step == Step.DEMOGRAPHICS2

    def test_resubmit_same_selection_is_idempotent(self):
        state = select_attention(at_attention1(), 1, "3")
        assert advance(state) == advance(state)
        state = select_attention(at_attention2(attention1="3"), 2, "agree")
        assert advance(state) == advance(state)

    def test_attention2_empty_is_inert(self):
        state = at_attention2()
        assert advance(state) is state

    @pytest.mark.parametrize("answer", ["agree", "strongly_agree"])
    def test_double_failure_disqualifies(self, answer):
        state = advance(select_attention(at_attention2(attention1="5"), 2, answer))
        assert state.step == Step.DISQUALIFIED
        assert state.exit_reason == ExitReason.ATTENTION
        assert state.attention2 == CheckResult.FAILED

    @pytest.mark.parametrize("answer", ["strongly_disagree", "disagree", "agree", "strongly_agree"])
    def test_attention1_passed_never_disqualifies(self, answer):
        state = advance(select_attention(at_attention2(attention1="2"), 2, answer))
        assert state.step == Step.TUTORIAL
        assert state.exit_reason is None

    @pytest.mark.parametrize("answer", ["strongly_disagree", "disagree"])
    def test_single_failure_is_tolerated(self, answer):
        state = advance(select_attention(at_attention2(attention1="1"), 2, answer))
        assert state.step == Step.TUTORIAL
        assert state.attention1 == CheckResult.FAILED
        assert state.attention2 == CheckResult.PASSED

    def test_selection_ignored_on_other_steps(self):
        state = start("baseline")
        assert select_attention(state, 1, "2") is state


class TestDemographics:

    def test_fields_edited_on_their_page(self):
        state = set_demographic(start("baseline"), "age", "25–34")
        assert state.demographics.age == "25–34"
        # ai_frequency belongs to the second page
        assert set_demographic(state, "ai_frequency", "Daily") is state

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            set_demographic(start("baseline"), "height", "180")

    def test_toggle_on_then_off_restores_set(self):
        state = advance(select_attention(at_attention1(), 1, "2"))
        state = toggle_ai_use(state, "Creative tasks", True)
        before = state.demographics.ai_uses
        state = toggle_ai_use(state, "Coding / technical work", True)
        state = toggle_ai_use(state, "Coding / technical work", False)
        assert state.demographics.ai_uses == before

    def test_toggle_has_set_semantics(self):
        state = advance(select_attention(at_attention1(), 1, "2"))
        state = toggle_ai_use(state, "Creative tasks", True)
        state = toggle_ai_use(state, "Creative tasks", True)
        state = toggle_ai_use(state, "Studying or learning", True)
        state = toggle_ai_use(state, "Creative tasks", False)
        assert state.demographics.ai_uses == ("Studying or learning",)


class TestComprehension:

    def test_incomplete_blocks(self):
        state = at_comprehension()
        state = answer_all(state)
        answers = dict(state.comprehension_answers)
        answers.pop("b-q3")
        partial = SessionState.from_dict({**state.as_dict(), "comprehension_answers": answers})
        result = advance(partial)
        assert result.step == Step.COMPREHENSION
        assert result.comprehension_attempts == 0
        assert result.comprehension_error == INCOMPLETE_MSG
        assert result.comprehension_answers == answers

    def test_all_correct_first_attempt(self):
        state = advance(answer_all(at_comprehension()))
        assert state.step == Step.DONE

    def test_wrong_then_retry(self):
        state = advance(answer_all(at_comprehension(), wrong=True))
        assert state.step == Step.COMPREHENSION
        assert state.comprehension_attempts == 1
        assert state.comprehension_error == RETRY_MSG
        assert len(state.comprehension_answers) == 4

    def test_wrong_twice_disqualifies(self):
        state = advance(answer_all(at_comprehension(), wrong=True))
        state = advance(state)
        assert state.step == Step.DISQUALIFIED
        assert state.exit_reason == ExitReason.COMPREHENSION

    def test_correct_on_second_attempt(self):
        state = advance(answer_all(at_comprehension("token"), wrong=True))
        state = advance(answer_all(state))
        assert state.step == Step.DONE
        assert state.comprehension_attempts == 1

    def test_one_wrong_answer_counts_as_failure(self):
        state = answer_all(at_comprehension("paragraph"))
        state = answer_comprehension(state, "p-q5", 0)
        assert advance(state).comprehension_attempts == 1

    @pytest.mark.parametrize("qid,index", [("nope", 0), ("b-q1", 9), ("b-q1", -1), ("b-q1", True), ("b-q1", "2")])
    def test_bad_answers_ignored(self, qid, index):
        state = at_comprehension()
        assert answer_comprehension(state, qid, index) is state


class TestTerminalStates:

    def test_disqualified_absorbs_everything(self):
        state = advance(select_attention(at_attention2(attention1="4"), 2, "agree"))
        for msg in [{"type": "back"}, {"type": "next"}, {"type": "set", "field": "age", "value": "65+"}]:
            assert apply_action(state, msg) is state

    def test_done_absorbs_everything(self):
        state = advance(answer_all(at_comprehension()))
        assert apply_action(state, {"type": "back"}) is state
        assert apply_action(state, {"type": "next"}) is state


class TestApplyAction:

    def test_string_indices_from_browser(self):
        state = apply_action(at_comprehension(), {"type": "answer", "question_id": "b-q1", "index": "2"})
        assert state.comprehension_answers == {"b-q1": 2}
        state = apply_action(at_attention1(), {"type": "select_attention", "which": "1", "value": "2"})
        assert state.attention1_answer == "2"

    @pytest.mark.parametrize("raw", ["--1", "²", "1.5", "", "two", "- 1"])
    def test_malformed_indices_do_not_raise(self, raw):
        state = at_attention1()
        assert apply_action(state, {"type": "select_attention", "which": raw, "value": "2"}) is state
        state = at_comprehension()
        assert apply_action(state, {"type": "answer", "question_id": "b-q1", "index": raw}) is state

    def test_unknown_messages_ignored(self):
        state = start("baseline")
        assert apply_action(state, {"type": "teleport"}) is state
        assert apply_action(state, {"type": "set", "field": "height"}) is state
        assert apply_action(state, "next") is state


class TestSerialization:

    def test_snapshot_survives_round_trip(self):
        state = advance(answer_all(at_comprehension("relation"), wrong=True))
        assert SessionState.from_dict(state.as_dict()) == state


class TestView:

    def test_comprehension_view(self):
        view = view_for(at_comprehension("token"))
        assert view["step"] == "comprehension"
        assert view["can_go_back"] is True
        assert [q["id"] for q in view["questions"]] == ["t-q1", "t-q2", "t-q3", "t-q4", "t-q5"]
        assert all("correct_index" not in q for q in view["questions"])

    def test_tutorial_view_follows_condition(self):
        state = advance(select_attention(at_attention2(condition="relation"), 2, "disagree"))
        view = view_for(state)
        assert view["can_go_back"] is False
        assert any("diagram" in line for line in view["tutorial"]["shown"])


class TestSessionBoundary:

    @pytest.fixture
    def recorder(self):
        calls = dict(navigate=[], complete=[])
        router = ExitRouter(calls["navigate"].append, exit_urls())
        return calls, router

    def _drive(self, session, msgs):
        for msg in msgs:
            session.dispatch(msg)

    def test_completion_fires_once_with_payload(self, recorder):
        calls, router = recorder
        session = ScreeningSession(start("baseline"), router, calls["complete"].append)
        self._drive(session, [
            {"type": "set", "field": "age", "value": "25–34"},
            {"type": "set", "field": "education", "value": "Bachelor's degree"},
            {"type": "set", "field": "ai_start_time", "value": "1–2 years ago"},
            {"type": "next"},
            {"type": "select_attention", "which": 1, "value": "2"},
            {"type": "next"},
            {"type": "set", "field": "ai_frequency", "value": "Daily"},
            {"type": "toggle_use", "label": "Coding / technical work", "checked": True},
            {"type": "toggle_use", "label": "Studying or learning", "checked": True},
            {"type": "next"},
            {"type": "select_attention", "which": 2, "value": "disagree"},
            {"type": "next"},
            {"type": "next"},
        ])
        for q in catalog("baseline").questions:
            session.dispatch({"type": "answer", "question_id": q.id, "index": q.correct_index})
        session.dispatch({"type": "next"})
        session.dispatch({"type": "next"})

        assert session.state.step == Step.DONE
        assert session.state.completion_sent is True
        assert calls["complete"] == [{
            "age": "25–34",
            "education": "Bachelor's degree",
            "aiStartTime": "1–2 years ago",
            "aiFrequency": "Daily",
            "aiUses": ["Coding / technical work", "Studying or learning"],
        }]
        assert calls["navigate"] == []

    def test_reloaded_done_state_does_not_refire(self, recorder):
        calls, router = recorder
        done = advance(answer_all(at_comprehension()))
        session = ScreeningSession(done, router, calls["complete"].append)
        session.dispatch({"type": "next"})
        restored = ScreeningSession(SessionState.from_dict(session.state.as_dict()), router, calls["complete"].append)
        restored.dispatch({"type": "next"})
        assert len(calls["complete"]) == 1

    def test_attention_exit_routes_once(self, recorder):
        calls, router = recorder
        session = ScreeningSession(select_attention(at_attention2(attention1="3"), 2, "agree"), router, calls["complete"].append)
        session.dispatch({"type": "next"})
        session.dispatch({"type": "next"})
        assert calls["navigate"] == [exit_urls()[ExitReason.ATTENTION]]
        assert calls["complete"] == []

    def test_comprehension_exit(self, recorder):
        calls, router = recorder
        state = advance(answer_all(at_comprehension(), wrong=True))
        session = ScreeningSession(state, router, calls["complete"].append)
        session.dispatch({"type": "next"})
        assert session.state.step == Step.DISQUALIFIED
        assert calls["navigate"] == [exit_urls()[ExitReason.COMPREHENSION]]

    def test_completion_payload_shape(self):
        assert set(completion_payload(start("baseline"))) == {
            "age", "education", "aiStartTime", "aiFrequency", "aiUses",
        }


class TestExitUrls:

    def test_session_config_wins(self):
        urls = exit_urls({"attention_fail_url": "https://example.org/a"})
        assert urls[ExitReason.ATTENTION] == "https://example.org/a"
        assert urls[ExitReason.COMPREHENSION] == exit_urls()[ExitReason.COMPREHENSION]

    def test_router_navigates_at_most_once(self):
        seen = []
        router = ExitRouter(seen.append, {ExitReason.ATTENTION: "a", ExitReason.COMPREHENSION: "c"})
        assert router.route(ExitReason.ATTENTION) == "a"
        assert router.route(ExitReason.COMPREHENSION) == "a"
        assert seen == ["a"]
