import os

PORT = int(os.getenv("PORT", "5000"))
APP_DEBUG = os.getenv("APP_DEBUG", "0").strip() == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
# empty: console only
LOG_FILE = os.getenv("LOG_FILE", "").strip()

# scheduler knobs; the weights not listed here keep their module defaults
SCHEDULER_ATTEMPTS = int(os.getenv("SCHEDULER_ATTEMPTS", "60"))
SCHEDULER_REPEAT_MATCHUPS = os.getenv("SCHEDULER_REPEAT_MATCHUPS", "penalize").strip().lower()
SCHEDULER_BLOCK_QUOTA = os.getenv("SCHEDULER_BLOCK_QUOTA", "1").strip() == "1"
SCHEDULER_FAIRNESS_WEIGHT = int(os.getenv("SCHEDULER_FAIRNESS_WEIGHT", "4"))

# upper bound the web layer accepts for one request
MAX_ROUNDS = int(os.getenv("MAX_ROUNDS", "50"))
# pairing search is exponential in the worst case (heavy forbidden lists)
MAX_PLAYERS = int(os.getenv("MAX_PLAYERS", "64"))
