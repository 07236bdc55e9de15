# screening_content.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

# ========= Conditions (interface modes) =========
BASELINE = 'baseline'
PARAGRAPH = 'paragraph'
RELATION = 'relation'
TOKEN = 'token'

CONDITIONS = (BASELINE, PARAGRAPH, RELATION, TOKEN)

# Main-task facts the tutorial and the readiness check both quote
NUM_TASK_QUESTIONS = 8
QUESTION_COUNT_OPTIONS = [4, 6, 8, 12]


def resolve_condition(raw: Optional[str]) -> str:
    """Exact, case-sensitive match; anything else falls back to baseline."""
    if isinstance(raw, str) and raw in CONDITIONS:
        return raw
    return BASELINE


# ========= Content types =========
@dataclass(frozen=True)
class ComprehensionQuestion:
    id: str
    prompt: str
    options: List[str]
    correct_index: int

    def __post_init__(self):
        if len(self.options) < 2:
            raise ValueError(f"question {self.id!r} needs at least two options")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(f"question {self.id!r}: correct_index {self.correct_index} out of range")

    def public(self) -> dict:
        # what the browser gets: never the answer key
        return dict(id=self.id, prompt=self.prompt, options=list(self.options))


@dataclass(frozen=True)
class TutorialContent:
    intro: str
    shown: List[str]
    task: str
    permissions: str
    clarification: List[str] = field(default_factory=list)
    title: str = 'Tutorial'

    def as_dict(self) -> dict:
        return dict(
            title=self.title,
            intro=self.intro,
            shown=list(self.shown),
            clarification=list(self.clarification),
            permissions=self.permissions,
            task=self.task,
        )


@dataclass(frozen=True)
class ConditionContent:
    condition: str
    tutorial: TutorialContent
    questions: List[ComprehensionQuestion]

    def question(self, question_id: str) -> Optional[ComprehensionQuestion]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


# ========= Shared building blocks =========
NOT_CORRECTNESS = 'These values do NOT indicate correctness or incorrectness.'
SOURCES_ALLOWED = 'You may use the provided sources and the web search panel.'


def _question_count(qid: str) -> ComprehensionQuestion:
    return ComprehensionQuestion(
        id=qid,
        prompt='How many questions will you answer?',
        options=[str(n) for n in QUESTION_COUNT_OPTIONS],
        correct_index=QUESTION_COUNT_OPTIONS.index(NUM_TASK_QUESTIONS),
    )


def _sources_allowed(qid: str) -> ComprehensionQuestion:
    return ComprehensionQuestion(
        id=qid,
        prompt='Can you use the sources provided in the answer or the web search panel?',
        options=['No', 'Yes'],
        correct_index=1,
    )


def _yes_no_trap(qid: str, prompt: str) -> ComprehensionQuestion:
    # "No" is always right: uncertainty is not a correctness signal
    return ComprehensionQuestion(id=qid, prompt=prompt, options=['Yes', 'No'], correct_index=1)


def _intro() -> str:
    return f"You will answer {NUM_TASK_QUESTIONS} questions, one at a time."


# ========= Catalog (one row per condition) =========
CATALOG: Dict[str, ConditionContent] = {
    BASELINE: ConditionContent(
        condition=BASELINE,
        tutorial=TutorialContent(
            intro=_intro(),
            shown=[
                'A medical yes/no question',
                'An AI-generated answer',
                'Sources provided in the answer',
            ],
            permissions='You may use the sources provided in the answer and the web search panel.',
            task=(
                'Your task is to read the information and choose your own Yes/No answer. '
                'After deciding, use the panel on the right to select your Yes/No answer '
                'and respond to the additional questions.'
            ),
        ),
        questions=[
            _question_count('b-q1'),
            ComprehensionQuestion(
                id='b-q2',
                prompt='What is your task for each question?',
                options=[
                    'Ignore the AI',
                    'Rewrite the AI answer',
                    'Read the question + AI answer, then choose your own Yes/No answer',
                    'Rate the readability',
                ],
                correct_index=2,
            ),
            _sources_allowed('b-q3'),
            _yes_no_trap('b-q4', 'Is the AI answer always guaranteed to be correct?'),
        ],
    ),
    PARAGRAPH: ConditionContent(
        condition=PARAGRAPH,
        tutorial=TutorialContent(
            intro=_intro(),
            shown=[
                'A medical yes/no question',
                'An AI answer divided into paragraphs',
                'An uncertainty value (0–100) for each paragraph',
                'Sources provided in the answer',
            ],
            clarification=[
                'A lower value (near 0) means the model shows low uncertainty.',
                'A higher value (near 100) means the model shows greater uncertainty.',
                NOT_CORRECTNESS,
            ],
            permissions=SOURCES_ALLOWED,
            task='Your task is to read the answer and uncertainty values, then choose your own Yes/No answer.',
        ),
        questions=[
            _question_count('p-q1'),
            ComprehensionQuestion(
                id='p-q2',
                prompt='What additional information does this interface show?',
                options=[
                    'Token highlights',
                    'A graph',
                    'An uncertainty value (0–100) for the answer',
                    'None',
                ],
                correct_index=2,
            ),
            ComprehensionQuestion(
                id='p-q3',
                prompt='What is your task for each question?',
                options=[
                    'Rate paragraphs',
                    'Summarize paragraphs',
                    'Read the answer + uncertainty value, then choose your own Yes/No answer',
                ],
                correct_index=2,
            ),
            _yes_no_trap('p-q4', 'Does a higher uncertainty value guarantee the paragraph is incorrect?'),
            _sources_allowed('p-q5'),
        ],
    ),
    RELATION: ConditionContent(
        condition=RELATION,
        tutorial=TutorialContent(
            intro=_intro(),
            shown=[
                'A medical yes/no question',
                'An AI-generated answer',
                'A diagram showing how sub-arguments support or attack the answer',
                'An uncertainty value (0–100) for each sub-argument',
                'Sources provided in the answer',
            ],
            clarification=[
                'A lower value (near 0) means low uncertainty about that sub-argument.',
                'A higher value (near 100) means higher uncertainty.',
                NOT_CORRECTNESS,
            ],
            permissions=SOURCES_ALLOWED,
            task=(
                'Your task is to read the AI answer + diagram + uncertainty values, '
                'then choose your own Yes/No answer.'
            ),
        ),
        questions=[
            _question_count('r-q1'),
            ComprehensionQuestion(
                id='r-q2',
                prompt='What visualization appears in this interface?',
                options=[
                    'Token highlights',
                    'Paragraph uncertainty',
                    'A diagram with uncertainty values (0–100) on sub-arguments',
                    'None',
                ],
                correct_index=2,
            ),
            ComprehensionQuestion(
                id='r-q3',
                prompt='What is your task for each question?',
                options=[
                    'Describe the diagram',
                    'Choose the most uncertain edge',
                    'Read the answer + sub-arguments + their uncertainties, then choose your own Yes/No answer',
                ],
                correct_index=2,
            ),
            _yes_no_trap('r-q4', 'Do higher uncertainty values mean the relationship is incorrect?'),
            _sources_allowed('r-q5'),
        ],
    ),
    TOKEN: ConditionContent(
        condition=TOKEN,
        tutorial=TutorialContent(
            intro=_intro(),
            shown=[
                'A medical yes/no question',
                'An AI-generated answer',
                'Words highlighted with colors representing uncertainty',
                'Sources provided in the answer',
            ],
            clarification=[
                'Lighter/white words → low uncertainty (near 0)',
                'Darker/red-tinted words → higher uncertainty (near 100)',
                'Highlights do NOT indicate correctness or incorrectness',
            ],
            permissions=SOURCES_ALLOWED,
            task='Your task is to read the highlighted answer, then choose your own Yes/No answer.',
        ),
        questions=[
            _question_count('t-q1'),
            ComprehensionQuestion(
                id='t-q2',
                prompt='What additional information does this interface show?',
                options=[
                    'Paragraph labels',
                    'A relationship diagram',
                    'Word-level uncertainty highlighting',
                    'None',
                ],
                correct_index=2,
            ),
            ComprehensionQuestion(
                id='t-q3',
                prompt='What is your task for each question?',
                options=[
                    'Identify uncertain words',
                    'Rate the highlight colors',
                    'Read the highlighted answer, then choose your own Yes/No answer',
                ],
                correct_index=2,
            ),
            _yes_no_trap('t-q4', 'Do red-highlighted words mean the statement is incorrect?'),
            _sources_allowed('t-q5'),
        ],
    ),
}


def catalog(condition: str) -> ConditionContent:
    """Tutorial + readiness-check questions for a resolved condition."""
    return CATALOG[condition]


# ========= Questionnaire options (demographics + attention checks) =========
AGE_CHOICES = ['18–24', '25–34', '35–44', '45–54', '55–64', '65+']
EDUCATION_CHOICES = [
    'High school', 'Some college', 'Associate’s degree',
    'Bachelor’s degree', 'Master’s degree', 'Doctoral degree',
]
AI_START_CHOICES = [
    'Within the last 6 months', '6–12 months ago', '1–2 years ago', 'More than 2 years ago',
]
AI_FREQUENCY_CHOICES = ['Never', 'A few times a month', 'A few times a week', 'Daily']
AI_USE_CHOICES = [
    'Searching for information',
    'Writing or editing text',
    'Coding / technical work',
    'Studying or learning',
    'Creative tasks',
    'Data analysis / research',
]

ATTENTION1_PROMPT = 'Please select the option "2" below.'
ATTENTION1_OPTIONS = ['1', '2', '3', '4', '5']
ATTENTION1_CORRECT = '2'

ATTENTION2_PROMPT = 'Indicate your agreement with the statement below:'
ATTENTION2_STATEMENT = '“I swim across the Atlantic Ocean to get to work every day.”'
ATTENTION2_OPTIONS = [
    ('strongly_disagree', 'Strongly disagree'),
    ('disagree', 'Disagree'),
    ('agree', 'Agree'),
    ('strongly_agree', 'Strongly agree'),
]
# disagreeing with the absurd statement is the attentive response
ATTENTION2_CORRECT = frozenset({'strongly_disagree', 'disagree'})
