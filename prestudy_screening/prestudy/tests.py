from otree.api import Currency as c, currency_range, expect, Bot, Submission, SubmissionMustFail
from . import *
from screening_content import catalog


DEMOGRAPHICS = [
    dict(type='set', field='age', value='25–34'),
    dict(type='set', field='education', value='Bachelor’s degree'),
    dict(type='set', field='ai_start_time', value='1–2 years ago'),
    dict(type='next'),
    dict(type='select_attention', which=1, value='2'),
    dict(type='next'),
    dict(type='set', field='ai_frequency', value='Daily'),
    dict(type='toggle_use', label='Coding / technical work', checked=True),
    dict(type='toggle_use', label='Creative tasks', checked=True),
    dict(type='toggle_use', label='Studying or learning', checked=True),
    dict(type='toggle_use', label='Creative tasks', checked=False),
    dict(type='next'),
]


def _answers(wrong=False):
    msgs = []
    for q in catalog('baseline').questions:
        index = (q.correct_index + 1) % len(q.options) if wrong else q.correct_index
        msgs.append(dict(type='answer', question_id=q.id, index=index))
    return msgs


class PlayerBot(Bot):
    cases = ['pass', 'retry_then_pass', 'attention_fail', 'comprehension_fail']

    def play_round(self):
        if self.case in ('attention_fail', 'comprehension_fail'):
            # live page: no submit button in the HTML
            yield SubmissionMustFail(Screening, check_html=False)
            expect(self.player.screening_outcome, f"disqualified_{self.case.split('_')[0]}")
            expect(self.participant.vars.get('prestudy_answers'), None)
            return

        yield Submission(Screening, check_html=False)
        expect(self.player.screening_outcome, 'completed')
        expect(self.player.age, '25–34')
        expect(self.player.ai_frequency, 'Daily')
        expect(self.participant.vars['prestudy_answers']['aiUses'],
               ['Coding / technical work', 'Studying or learning'])
        if self.case == 'retry_then_pass':
            expect(self.player.comprehension_attempts, 1)


def call_live_method(method, **kwargs):
    # every bot in the group sits on the live page; each one is driven through its case
    for player in kwargs['group'].get_players():
        def send(data, id_in_group=player.id_in_group):
            return method(id_in_group, data)[id_in_group]

        _drive(send, player, kwargs['case'])


def _drive(send, player, case):
    if case == 'attention_fail':
        for msg in DEMOGRAPHICS[:4]:
            send(msg)
        # Attention 1 wrong, Attention 2 agrees with the absurd statement
        send(dict(type='select_attention', which=1, value='4'))
        send(dict(type='next'))
        send(dict(type='next'))
        send(dict(type='select_attention', which=2, value='agree'))
        reply = send(dict(type='next'))
        expect(reply['type'], 'redirect')
        expect('C100G96V' in reply['url'], True)
        # session is over; nothing moves any more
        expect(send(dict(type='back'))['type'], 'closed')
        expect(player.attention1_result, 'failed')
        return

    for msg in DEMOGRAPHICS:
        send(msg)
    send(dict(type='select_attention', which=2, value='strongly_disagree'))
    reply = send(dict(type='next'))
    expect(reply['view']['step'], 'tutorial')
    reply = send(dict(type='next'))
    expect(reply['view']['step'], 'comprehension')

    # unanswered questions block the submit
    reply = send(dict(type='next'))
    expect(reply['view']['error'], 'Please answer all comprehension questions.')
    expect(player.comprehension_attempts, 0)

    if case == 'pass':
        for msg in _answers():
            send(msg)
        expect(send(dict(type='next'))['type'], 'done')
        return

    for msg in _answers(wrong=True):
        send(msg)
    reply = send(dict(type='next'))
    expect(reply['view']['step'], 'comprehension')
    expect(reply['view']['error'], "That's incorrect. Please try again.")
    expect(player.comprehension_attempts, 1)

    if case == 'retry_then_pass':
        for msg in _answers():
            send(msg)
        expect(send(dict(type='next'))['type'], 'done')
        # a repeated message after completion does not re-run the hand-off
        expect(send(dict(type='next'))['type'], 'done')
    else:
        reply = send(dict(type='next'))
        expect(reply['type'], 'redirect')
        expect('C440E5TS' in reply['url'], True)
