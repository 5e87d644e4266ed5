import logging
import random
import secrets

logger = logging.getLogger(__name__)


def create_rng(seed=0):
    """
    Returns a zero-argument callable producing uniform floats in [0, 1).

    A non-zero seed gives a reproducible stream (same seed, same session).
    Seed 0 draws from the OS entropy source instead.
    """
    if seed:
        logger.info(f"Using seeded RNG (seed={seed}).")
        return random.Random(seed).random
    return secrets.SystemRandom().random
