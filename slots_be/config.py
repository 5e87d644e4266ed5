"""
Host configuration read from the environment.

Math model keys (reels, weights, paytable, QA flags...) are not read here; they
come from the MathSpec resolver, optionally pointed at a dedicated .env file
through MATH_ENV_FILE.
"""
import os


def _env_bool(name, default):
    return os.getenv(name, str(default)).lower() in ('true', '1', 't', 'yes', 'on')


def _env_float(name, default):
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """Runtime configuration for the slot host."""

    # Flask Debug Mode
    DEBUG = _env_bool('DEBUG', False)

    # Optional .env file holding the math model keys; process env still wins
    MATH_ENV_FILE = os.getenv('MATH_ENV_FILE') or None

    # Session defaults
    STARTING_BALANCE = _env_int('STARTING_BALANCE', 1000)
    DEFAULT_BET = _env_int('DEFAULT_BET', 10)

    # Round pacing (seconds)
    SETTLE_DELAY_SECONDS = _env_float('SETTLE_DELAY_SECONDS', 0.35)
    AUTO_SPIN_DELAY_SECONDS = _env_float('AUTO_SPIN_DELAY_SECONDS', 0.35)

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    JSON_LOGS = _env_bool('JSON_LOGS', True)

    # Overrides RNG_SEED from the math model when set
    RNG_SEED = None


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    JSON_LOGS = False
    MATH_ENV_FILE = None
    SETTLE_DELAY_SECONDS = 0.0
    AUTO_SPIN_DELAY_SECONDS = 0.0
    # Fixed seed so API tests replay the same grids
    RNG_SEED = 1234
