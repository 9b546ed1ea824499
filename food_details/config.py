# food_details/config.py
import os
from typing import Optional, Set

from dotenv import load_dotenv

load_dotenv()

# --------- Food backend ---------

FOOD_API_URL: Optional[str] = os.getenv("FOOD_API_URL")  # e.g. http://localhost:3333
FOOD_API_TIMEOUT = float(os.getenv("FOOD_API_TIMEOUT", "10.0"))

# Compositions idle for longer than this are dropped from the host session store.
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "1800"))

if not FOOD_API_URL:
    print(
        "[WARN] FOOD_API_URL env var is not set. "
        "Food lookups and order submissions will fail until it is configured."
    )


# --------- API key protection ---------
# You can configure:
#   - API_KEYS = "key1,key2,key3"
#   - or API_KEY = "single-key"


def load_api_keys() -> Set[str]:
    raw = os.getenv("API_KEYS") or os.getenv("API_KEY")
    if not raw:
        raise RuntimeError(
            "API_KEYS or API_KEY environment variable must be set for API key protection. "
            "Set API_KEYS to a comma-separated list of allowed API keys, "
            "or API_KEY to a single key."
        )
    return {k.strip() for k in raw.split(",") if k.strip()}
