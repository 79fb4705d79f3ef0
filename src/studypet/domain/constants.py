"""Centralized constants for the StudyPet learning core.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SM-2 Scheduler ----------
INITIAL_EASE = 2.5
MIN_EASE = 1.3
PASS_GRADE = 3
FIRST_INTERVAL = 1  # days, after the first successful review
SECOND_INTERVAL = 6  # days, after the second successful review
FAILED_INTERVAL = 1
EASE_DECIMALS = 2

# ---------- Performance Scorer ----------
GRADE_WEIGHT = 0.40
TIME_WEIGHT = 0.25
FLIP_WEIGHT = 0.15
DIFFICULTY_WEIGHT = 0.20  # blended in separately, not part of the raw sum

GRADE_SCORES = {5: 1.0, 4: 0.7, 3: 0.4, 2: 0.2, 1: 0.0}
UNKNOWN_GRADE_SCORE = 0.5

OPTIMAL_MIN_MS = 2000
OPTIMAL_MAX_MS = 10000
SLOW_MULTIPLIER = 1.5
TIME_SCORE_TOO_FAST = 0.4
TIME_SCORE_OPTIMAL = 1.0
TIME_SCORE_SLOW = 0.6
TIME_SCORE_STRUGGLED = 0.3

FLIP_SCORE_RECALLED = FLIP_WEIGHT  # the flip component is stated on the weighted scale
FLIP_SCORE_REVEALED = 0.05

NEUTRAL_CARD_DIFFICULTY = 5
DIFFICULTY_OFFSET_PER_LEVEL = 0.05

# ---------- Proficiency Estimator ----------
DEFAULT_PROFICIENCY = 50.0
DEFAULT_CONFIDENCE = 0.3
BASE_LEARNING_RATE = 0.15
CONFIDENCE_DAMPING = 0.5
MAX_CONFIDENCE = 0.95
CONFIDENCE_GROWTH = 0.05
RESPONSE_TIME_EMA_WEIGHT = 0.9

PLACEMENT_PROFICIENCY = {"Beginner": 25.0, "Intermediate": 50.0, "Advanced": 75.0}
MAX_PLACEMENT_CONFIDENCE = 0.6

# ---------- Target Difficulty ----------
STRETCH_FACTOR = 0.15
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
LABEL_THRESHOLDS = [
    (30, "Beginner"),
    (50, "Elementary"),
    (70, "Intermediate"),
    (85, "Advanced"),
]
TOP_LABEL = "Expert"
LABEL_LEVELS = {"Expert": 9, "Advanced": 7, "Intermediate": 5, "Elementary": 3}
FALLBACK_LEVEL = 2

# ---------- Review Orchestration ----------
DEFAULT_TOPIC = "General"
EASE_BOOST_PROFICIENCY = 70.0
EASE_BOOST_MULTIPLIER = 1.05
EASE_BOOST_CAP = 3.0

# ---------- Pet / Gamification ----------
STAGE_THRESHOLDS = {"egg": 0, "baby": 100, "child": 500, "adult": 1500}
GRADE_XP = {3: 10, 4: 20}
EASY_XP = 5  # grade >= 5
FAIL_HEALTH_PENALTY = 10  # grade <= 1
MAX_HEALTH = 100
COINS_PER_REVIEW = 10
FEED_COST = 50
FEED_HEALTH = 20
FEED_XP = 5

# ---------- Boss Encounter ----------
LEECH_EASE_THRESHOLD = 2.3
LEECH_LIMIT = 5
BOSS_MIN_CARDS = 3
BOSS_WIN_XP = 100
BOSS_WIN_COINS = 50
BOSS_LOSS_HEALTH = 20

# ---------- Content Generation ----------
CARDS_PER_DECK = 5
REQUEST_TIMEOUT = 60.0
DECK_TEMPERATURE = 0.9
PLACEMENT_TEMPERATURE = 0.8
PLACEMENT_QUESTIONS = 3
FAST_PLACEMENT_MS = 10000
COMPANION_TEMPERATURE = 1.0
