# settings.py
from os import environ
from pathlib import Path
from dotenv import load_dotenv
load_dotenv(Path(__file__).with_name('.env'))

# ---- Project-wide defaults (you can override per-session if needed)
SESSION_CONFIG_DEFAULTS = dict(
    real_world_currency_per_point=1.00,
    participation_fee=0.00,
    doc="",
    # Interface mode: 'baseline' | 'paragraph' | 'relation' | 'token' (anything else -> baseline)
    mode=environ.get('SCREENING_MODE', 'baseline'),
    # Disqualification destinations ('' -> ATTENTION_FAIL_URL / COMPREHENSION_FAIL_URL env defaults)
    attention_fail_url='',
    comprehension_fail_url='',
)

# ---- Production session (the only one your participants should see)
SESSION_CONFIGS = [
    dict(
        name='prestudy_screening',
        display_name='Pre-study Screening',
        num_demo_participants=10,
        app_sequence=['prestudy'],
    ),
]


# ---- Optional: one session per interface mode, for piloting the tutorials/quizzes
if environ.get('SCREENING_DEBUG_MODES', '').lower() in {'1','true','yes'}:
    SESSION_CONFIGS += [
        dict(
            name=f'prestudy_{mode}',
            display_name=f'[DEBUG] Screening, {mode} mode',
            num_demo_participants=1,
            app_sequence=['prestudy'],
            mode=mode,
        )
        for mode in ['baseline', 'paragraph', 'relation', 'token']
    ]

# ---- Carried across apps in participant.vars: 'mode', 'screening_state', 'prestudy_answers'
PARTICIPANT_FIELDS = []
SESSION_FIELDS = []

LANGUAGE_CODE = 'en'
REAL_WORLD_CURRENCY_CODE = 'USD'
USE_POINTS = True

ROOMS = [
    # dict(name='prolific', display_name='Prolific study', participant_label_file='_room_labels.txt'),
]

ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = environ.get('OTREE_ADMIN_PASSWORD')  # set on Heroku

DEMO_PAGE_INTRO_HTML = """
<h3>Pre-study Screening</h3>
<p>Demographics, attention checks, tutorial and readiness check before the main task.</p>
"""

# Replace this before deploying
SECRET_KEY = environ.get('SECRET_KEY', 'replace-me')
INSTALLED_APPS = ['otree']
