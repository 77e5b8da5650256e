import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv("DATA_DIR", "data"))

DEBUG = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
POLICY_FILE = Path(os.getenv("POLICY_FILE", str(DATA_DIR / "policy.json")))


def _load_int(env_key: str, default: int) -> int:
    raw_value = os.getenv(env_key)
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _load_json_list(env_key: str, default: list) -> list:
    raw_value = os.getenv(env_key)
    if not raw_value:
        return default
    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError:
        return default
    return parsed if isinstance(parsed, list) else default


DEFAULT_POINTS_LIMIT = _load_int("DEFAULT_POINTS_LIMIT", 2000)
# Extra unit ids priced per model for ammunition, on top of the policy file.
EXTRA_AMMO_PER_MODEL_UNITS = _load_json_list("AMMO_PER_MODEL_UNITS", [])
