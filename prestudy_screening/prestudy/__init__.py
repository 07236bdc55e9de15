# prestudy/__init__.py
from otree.api import *
import json

from screening_content import resolve_condition
from screening_flow import (
    Step, CheckResult, SessionState,
    ExitRouter, ScreeningSession, exit_urls, start, view_for,
)

doc = """Pre-study screening: demographics, two attention checks, condition tutorial, readiness check."""


class C(BaseConstants):
    NAME_IN_URL = 'prestudy'
    PLAYERS_PER_GROUP = None
    NUM_ROUNDS = 1


class Subsession(BaseSubsession):
    pass


class Group(BaseGroup):
    pass


class Player(BasePlayer):
    # Interface mode (resolved once at session creation)
    condition = models.StringField(initial='baseline')

    # Demographics (copied in on completion)
    age = models.StringField(initial='')
    education = models.StringField(initial='')
    ai_start_time = models.StringField(initial='')
    ai_frequency = models.StringField(initial='')
    ai_uses = models.LongStringField(initial='[]')   # JSON list, in selection order

    # Attention checks: '' until submitted, then 'passed' | 'failed'
    attention1_answer = models.StringField(initial='')
    attention2_answer = models.StringField(initial='')
    attention1_result = models.StringField(initial='')
    attention2_result = models.StringField(initial='')

    comprehension_attempts = models.IntegerField(initial=0)
    # '' | 'completed' | 'disqualified_attention' | 'disqualified_comprehension'
    screening_outcome = models.StringField(initial='')


def creating_session(subsession: Subsession):
    cfg = subsession.session.config
    for p in subsession.get_players():
        p.condition = resolve_condition(cfg.get('mode'))
        p.participant.vars['mode'] = p.condition
        p.participant.vars['screening_state'] = start(p.condition).as_dict()


# ---- snapshot storage
def _load_state(player: Player) -> SessionState:
    raw = player.participant.vars.get('screening_state')
    if not raw:
        return start(player.condition)
    return SessionState.from_dict(raw)


def _save_state(player: Player, state: SessionState):
    player.participant.vars['screening_state'] = state.as_dict()


def _result_field(result: CheckResult) -> str:
    return '' if result == CheckResult.UNKNOWN else result.value


def _sync_player(player: Player, state: SessionState):
    player.attention1_answer = state.attention1_answer
    player.attention2_answer = state.attention2_answer
    player.attention1_result = _result_field(state.attention1)
    player.attention2_result = _result_field(state.attention2)
    player.comprehension_attempts = state.comprehension_attempts
    if state.step == Step.DISQUALIFIED and state.exit_reason:
        player.screening_outcome = f"disqualified_{state.exit_reason.value}"


def record_completion(player: Player, payload: dict):
    """Hand the demographic answers to whatever app runs next."""
    player.age = payload['age']
    player.education = payload['education']
    player.ai_start_time = payload['aiStartTime']
    player.ai_frequency = payload['aiFrequency']
    player.ai_uses = json.dumps(payload['aiUses'])
    player.screening_outcome = 'completed'
    player.participant.vars['prestudy_answers'] = payload
    print(f"[SCREEN] completed participant={player.participant.code} condition={player.condition}")


class Screening(Page):

    @staticmethod
    def js_vars(player: Player):
        state = _load_state(player)
        exit_url = None
        if state.step == Step.DISQUALIFIED and state.exit_reason:
            exit_url = exit_urls(player.session.config)[state.exit_reason]
        return dict(view=view_for(state), exit_url=exit_url)

    @staticmethod
    def live_method(player: Player, data):
        outbox = []
        session = ScreeningSession(
            _load_state(player),
            router=ExitRouter(
                lambda url: outbox.append(dict(type='redirect', url=url)),
                exit_urls(player.session.config),
            ),
            on_complete=lambda payload: record_completion(player, payload),
        )
        before = session.state.step
        state = session.dispatch(data)
        _save_state(player, state)
        _sync_player(player, state)

        if state.step != before:
            print(f"[SCREEN] participant={player.participant.code} step={before.value} -> {state.step.value}")

        if outbox:
            print(f"[SCREEN] disqualified participant={player.participant.code} reason={state.exit_reason.value}")
            reply = outbox[0]
        elif state.step == Step.DONE:
            reply = dict(type='done')
        elif state.step == Step.DISQUALIFIED:
            reply = dict(type='closed')
        else:
            reply = dict(type='state', view=view_for(state))
        return {player.id_in_group: reply}

    @staticmethod
    def error_message(player: Player, values):
        if _load_state(player).step != Step.DONE:
            return "Please complete the screening steps first."


def custom_export(players):
    """One row per participant with the screening outcome."""
    yield [
        "session_code", "participant_code", "condition",
        "attention1_answer", "attention1_result", "attention2_answer", "attention2_result",
        "comprehension_attempts", "screening_outcome",
        "age", "education", "ai_start_time", "ai_frequency", "ai_uses",
    ]
    for p in players:
        yield [
            p.session.code, p.participant.code, p.condition,
            p.attention1_answer, p.attention1_result, p.attention2_answer, p.attention2_result,
            p.comprehension_attempts, p.screening_outcome,
            p.age, p.education, p.ai_start_time, p.ai_frequency, p.ai_uses,
        ]


page_sequence = [Screening]
