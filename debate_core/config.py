"""Default configuration for AI debate"""

import os

# Panel and round limits
JUDGE_PANEL_SIZE = 6
MIN_ROUNDS = 1
MAX_ROUNDS = 50

# Judge scoring
SCORE_CATEGORIES = ("logic", "evidence", "rebuttal", "expression")
CATEGORY_WEIGHTS = {
    "logic": 0.3,
    "evidence": 0.3,
    "rebuttal": 0.2,
    "expression": 0.2,
}
DEFAULT_SCORE = 75.0
MIN_SCORE_CONFIDENCE = 0.5

# LLM settings
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1500"))
LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "5"))
LLM_ATTEMPT_TIMEOUT = float(os.getenv("LLM_ATTEMPT_TIMEOUT", "60"))
LLM_MIN_INTERVAL = float(os.getenv("LLM_MIN_INTERVAL", "1.5"))

# Durable store
DEBATE_STORE_DIR = os.getenv("DEBATE_STORE_DIR", ".debate-store")
PERSIST_MAX_ATTEMPTS = int(os.getenv("PERSIST_MAX_ATTEMPTS", "4"))
PERSIST_BASE_DELAY = float(os.getenv("PERSIST_BASE_DELAY", "0.2"))

# Pause between score reveal steps while judging (seconds)
SCORE_REVEAL_DELAY = float(os.getenv("SCORE_REVEAL_DELAY", "0"))
