# screening_flow.py
"""
Pre-study screening state machine.

Every transition takes a SessionState snapshot and returns a new one; nothing
here touches oTree, the browser or the network. Side effects (the exit
redirect and the completion hand-off) live in ScreeningSession, at the edge.
"""
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from screening_content import (
    CONDITIONS, catalog,
    AGE_CHOICES, EDUCATION_CHOICES, AI_START_CHOICES, AI_FREQUENCY_CHOICES, AI_USE_CHOICES,
    ATTENTION1_PROMPT, ATTENTION1_OPTIONS, ATTENTION1_CORRECT,
    ATTENTION2_PROMPT, ATTENTION2_STATEMENT, ATTENTION2_OPTIONS, ATTENTION2_CORRECT,
)


class Step(str, Enum):
    DEMOGRAPHICS1 = 'demographics1'
    ATTENTION1 = 'attention1'
    DEMOGRAPHICS2 = 'demographics2'
    ATTENTION2 = 'attention2'
    TUTORIAL = 'tutorial'
    COMPREHENSION = 'comprehension'
    DONE = 'done'
    DISQUALIFIED = 'disqualified'


class CheckResult(str, Enum):
    UNKNOWN = 'unknown'
    PASSED = 'passed'
    FAILED = 'failed'


class ExitReason(str, Enum):
    ATTENTION = 'attention'
    COMPREHENSION = 'comprehension'


TERMINAL_STEPS = (Step.DONE, Step.DISQUALIFIED)

# Steps that only move forward, with nothing to evaluate
PLAIN_NEXT = {
    Step.DEMOGRAPHICS1: Step.ATTENTION1,
    Step.DEMOGRAPHICS2: Step.ATTENTION2,
    Step.TUTORIAL: Step.COMPREHENSION,
}

BACK_TARGETS = {
    Step.ATTENTION1: Step.DEMOGRAPHICS1,
    Step.ATTENTION2: Step.DEMOGRAPHICS2,
    Step.COMPREHENSION: Step.TUTORIAL,
}

# demographic field -> page it is asked on
DEMOGRAPHIC_FIELDS = {
    'age': Step.DEMOGRAPHICS1,
    'education': Step.DEMOGRAPHICS1,
    'ai_start_time': Step.DEMOGRAPHICS1,
    'ai_frequency': Step.DEMOGRAPHICS2,
}

INCOMPLETE_MSG = 'Please answer all comprehension questions.'
RETRY_MSG = "That's incorrect. Please try again."

STEP_TITLES = {
    Step.DEMOGRAPHICS1: 'Demographics',
    Step.ATTENTION1: 'Response Task 1',
    Step.DEMOGRAPHICS2: 'Demographics (continued)',
    Step.ATTENTION2: 'Response Task 2',
    Step.TUTORIAL: 'Tutorial',
    Step.COMPREHENSION: 'Readiness Check',
    Step.DONE: '',
    Step.DISQUALIFIED: '',
}


# ========= Snapshot =========
@dataclass(frozen=True)
class Demographics:
    age: str = ''
    education: str = ''
    ai_start_time: str = ''
    ai_frequency: str = ''
    ai_uses: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionState:
    condition: str
    step: Step = Step.DEMOGRAPHICS1
    demographics: Demographics = Demographics()
    attention1_answer: str = ''
    attention2_answer: str = ''
    attention1: CheckResult = CheckResult.UNKNOWN
    attention2: CheckResult = CheckResult.UNKNOWN
    comprehension_answers: Dict[str, int] = field(default_factory=dict)
    comprehension_attempts: int = 0
    comprehension_error: str = ''
    exit_reason: Optional[ExitReason] = None
    completion_sent: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS

    def as_dict(self) -> dict:
        d = self.demographics
        return dict(
            condition=self.condition,
            step=self.step.value,
            demographics=dict(
                age=d.age,
                education=d.education,
                ai_start_time=d.ai_start_time,
                ai_frequency=d.ai_frequency,
                ai_uses=list(d.ai_uses),
            ),
            attention1_answer=self.attention1_answer,
            attention2_answer=self.attention2_answer,
            attention1=self.attention1.value,
            attention2=self.attention2.value,
            comprehension_answers=dict(self.comprehension_answers),
            comprehension_attempts=self.comprehension_attempts,
            comprehension_error=self.comprehension_error,
            exit_reason=self.exit_reason.value if self.exit_reason else None,
            completion_sent=self.completion_sent,
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionState':
        demo = dict(data.get('demographics') or {})
        demo['ai_uses'] = tuple(demo.get('ai_uses') or ())
        exit_reason = data.get('exit_reason')
        return cls(
            condition=data['condition'],
            step=Step(data.get('step', Step.DEMOGRAPHICS1.value)),
            demographics=Demographics(**demo),
            attention1_answer=data.get('attention1_answer', ''),
            attention2_answer=data.get('attention2_answer', ''),
            attention1=CheckResult(data.get('attention1', CheckResult.UNKNOWN.value)),
            attention2=CheckResult(data.get('attention2', CheckResult.UNKNOWN.value)),
            comprehension_answers=dict(data.get('comprehension_answers') or {}),
            comprehension_attempts=int(data.get('comprehension_attempts', 0)),
            comprehension_error=data.get('comprehension_error', ''),
            exit_reason=ExitReason(exit_reason) if exit_reason else None,
            completion_sent=bool(data.get('completion_sent', False)),
        )


def start(condition: str) -> SessionState:
    if condition not in CONDITIONS:
        raise ValueError(f"unresolved condition {condition!r}")
    return SessionState(condition=condition)


# ========= Field edits (no step change) =========
def set_demographic(state: SessionState, name: str, value) -> SessionState:
    if name not in DEMOGRAPHIC_FIELDS:
        raise ValueError(f"unknown demographic field {name!r}")
    if state.step != DEMOGRAPHIC_FIELDS[name]:
        return state
    demo = replace(state.demographics, **{name: '' if value is None else str(value)})
    return replace(state, demographics=demo)


def toggle_ai_use(state: SessionState, label: str, checked: bool) -> SessionState:
    if state.step != Step.DEMOGRAPHICS2:
        return state
    uses = state.demographics.ai_uses
    if checked and label not in uses:
        uses = uses + (label,)
    elif not checked:
        uses = tuple(u for u in uses if u != label)
    return replace(state, demographics=replace(state.demographics, ai_uses=uses))


def select_attention(state: SessionState, which: int, value) -> SessionState:
    value = '' if value is None else str(value)
    if which == 1 and state.step == Step.ATTENTION1:
        return replace(state, attention1_answer=value)
    if which == 2 and state.step == Step.ATTENTION2:
        return replace(state, attention2_answer=value)
    return state


def answer_comprehension(state: SessionState, question_id: str, index) -> SessionState:
    if state.step != Step.COMPREHENSION:
        return state
    q = catalog(state.condition).question(question_id)
    if q is None or isinstance(index, bool) or not isinstance(index, int):
        return state
    if not 0 <= index < len(q.options):
        return state
    answers = dict(state.comprehension_answers)
    answers[question_id] = index
    return replace(state, comprehension_answers=answers)


# ========= Gated submits =========
def submit_attention1(state: SessionState) -> SessionState:
    if state.step != Step.ATTENTION1 or not state.attention1_answer:
        return state
    passed = state.attention1_answer == ATTENTION1_CORRECT
    # a miss here is only acted on after the second check
    return replace(
        state,
        attention1=CheckResult.PASSED if passed else CheckResult.FAILED,
        step=Step.DEMOGRAPHICS2,
    )


def submit_attention2(state: SessionState) -> SessionState:
    if state.step != Step.ATTENTION2 or not state.attention2_answer:
        return state
    result = CheckResult.PASSED if state.attention2_answer in ATTENTION2_CORRECT else CheckResult.FAILED
    if state.attention1 == CheckResult.FAILED and result == CheckResult.FAILED:
        return replace(
            state,
            attention2=result,
            step=Step.DISQUALIFIED,
            exit_reason=ExitReason.ATTENTION,
        )
    return replace(state, attention2=result, step=Step.TUTORIAL)


def submit_comprehension(state: SessionState) -> SessionState:
    if state.step != Step.COMPREHENSION:
        return state
    questions = catalog(state.condition).questions
    answers = state.comprehension_answers
    if any(q.id not in answers for q in questions):
        return replace(state, comprehension_error=INCOMPLETE_MSG)

    if all(answers[q.id] == q.correct_index for q in questions):
        return replace(state, step=Step.DONE, comprehension_error='')
    if state.comprehension_attempts == 0:
        return replace(state, comprehension_attempts=1, comprehension_error=RETRY_MSG)
    return replace(state, step=Step.DISQUALIFIED, exit_reason=ExitReason.COMPREHENSION)


# ========= Navigation =========
def advance(state: SessionState) -> SessionState:
    """The current step's Next / Submit control."""
    if state.step in PLAIN_NEXT:
        return replace(state, step=PLAIN_NEXT[state.step])
    if state.step == Step.ATTENTION1:
        return submit_attention1(state)
    if state.step == Step.ATTENTION2:
        return submit_attention2(state)
    if state.step == Step.COMPREHENSION:
        return submit_comprehension(state)
    return state


def back(state: SessionState) -> SessionState:
    target = BACK_TARGETS.get(state.step)
    if target is None:
        return state
    return replace(state, step=target)


def mark_completed(state: SessionState) -> SessionState:
    return replace(state, completion_sent=True)


def completion_payload(state: SessionState) -> dict:
    d = state.demographics
    return dict(
        age=d.age,
        education=d.education,
        aiStartTime=d.ai_start_time,
        aiFrequency=d.ai_frequency,
        aiUses=list(d.ai_uses),
    )


# ========= Client messages =========
def _as_index(value):
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def apply_action(state: SessionState, data: dict) -> SessionState:
    """Map one browser message onto a transition; terminal states absorb everything."""
    if state.is_terminal or not isinstance(data, dict):
        return state
    kind = data.get('type')

    if kind == 'set':
        name = data.get('field')
        if name not in DEMOGRAPHIC_FIELDS:
            return state
        return set_demographic(state, name, data.get('value'))
    if kind == 'toggle_use':
        return toggle_ai_use(state, str(data.get('label') or ''), bool(data.get('checked')))
    if kind == 'select_attention':
        return select_attention(state, _as_index(data.get('which')), data.get('value'))
    if kind == 'answer':
        return answer_comprehension(state, data.get('question_id'), _as_index(data.get('index')))
    if kind == 'next':
        return advance(state)
    if kind == 'back':
        return back(state)
    return state


def view_for(state: SessionState) -> dict:
    """Render model for the current step."""
    step = state.step
    view = dict(
        step=step.value,
        title=STEP_TITLES[step],
        condition=state.condition,
        can_go_back=step in BACK_TARGETS,
    )
    d = state.demographics
    if step == Step.DEMOGRAPHICS1:
        view['fields'] = [
            dict(name='age', label='Age *', placeholder='Select your age range',
                 choices=AGE_CHOICES, value=d.age),
            dict(name='education', label='Highest education level *',
                 placeholder='Select your highest education level',
                 choices=EDUCATION_CHOICES, value=d.education),
            dict(name='ai_start_time', label='When did you start using AI tools?',
                 placeholder='Select one', choices=AI_START_CHOICES, value=d.ai_start_time),
        ]
    elif step == Step.ATTENTION1:
        view.update(
            prompt=ATTENTION1_PROMPT,
            options=[dict(value=o, label=o) for o in ATTENTION1_OPTIONS],
            selected=state.attention1_answer,
        )
    elif step == Step.DEMOGRAPHICS2:
        view['fields'] = [
            dict(name='ai_frequency', label='How often do you use AI tools?',
                 placeholder='Select one', choices=AI_FREQUENCY_CHOICES, value=d.ai_frequency),
        ]
        view['uses'] = dict(
            label='What do you primarily use AI tools for? (Select all that apply)',
            choices=AI_USE_CHOICES,
            selected=list(d.ai_uses),
        )
    elif step == Step.ATTENTION2:
        view.update(
            prompt=ATTENTION2_PROMPT,
            statement=ATTENTION2_STATEMENT,
            options=[dict(value=v, label=label) for v, label in ATTENTION2_OPTIONS],
            selected=state.attention2_answer,
        )
    elif step == Step.TUTORIAL:
        view['tutorial'] = catalog(state.condition).tutorial.as_dict()
        view['next_label'] = 'Continue to Readiness Check'
    elif step == Step.COMPREHENSION:
        view.update(
            questions=[q.public() for q in catalog(state.condition).questions],
            answers=dict(state.comprehension_answers),
            error=state.comprehension_error,
            next_label='Continue',
        )
    return view


# ========= Boundary: exit redirect + completion hand-off =========
ENV_ATTENTION_FAIL_URL = os.getenv(
    "ATTENTION_FAIL_URL", "https://app.prolific.com/submissions/complete?cc=C100G96V")
ENV_COMPREHENSION_FAIL_URL = os.getenv(
    "COMPREHENSION_FAIL_URL", "https://app.prolific.com/submissions/complete?cc=C440E5TS")


def exit_urls(session_config: Optional[dict] = None) -> Dict[ExitReason, str]:
    # session config wins; falls back to env
    cfg = session_config or {}
    return {
        ExitReason.ATTENTION: cfg.get('attention_fail_url') or ENV_ATTENTION_FAIL_URL,
        ExitReason.COMPREHENSION: cfg.get('comprehension_fail_url') or ENV_COMPREHENSION_FAIL_URL,
    }


class ExitRouter:
    """One-way redirect to a disqualification destination; navigates at most once."""

    def __init__(self, navigate: Callable[[str], None], urls: Optional[Dict[ExitReason, str]] = None):
        self._navigate = navigate
        self.urls = urls or exit_urls()
        self.routed_to: Optional[str] = None

    def route(self, reason: ExitReason) -> str:
        if self.routed_to is None:
            self.routed_to = self.urls[reason]
            self._navigate(self.routed_to)
        return self.routed_to


class ScreeningSession:
    """
    Holds the current snapshot and runs the boundary effects of each transition:
    - entering DISQUALIFIED routes through the ExitRouter
    - reaching DONE calls on_complete(payload) exactly once
    """

    def __init__(self, state: SessionState, router: ExitRouter, on_complete: Callable[[dict], None]):
        self.state = state
        self.router = router
        self.on_complete = on_complete

    def dispatch(self, data: dict) -> SessionState:
        before = self.state
        self.state = apply_action(before, data)
        if self.state.step == Step.DISQUALIFIED and before.step != Step.DISQUALIFIED:
            self.router.route(self.state.exit_reason)
        self._settle()
        return self.state

    def _settle(self):
        if self.state.step == Step.DONE and not self.state.completion_sent:
            self.on_complete(completion_payload(self.state))
            self.state = mark_completed(self.state)
