"""Booking reference generator - human readable ids like TR-48213"""

import logging
import random
from typing import Callable, Optional

from ...config import BOOKING_REF_PREFIX
from ...errors import ReferenceGenerationFailedError

logger = logging.getLogger(__name__)

MIN_NUMBER = 10000
MAX_NUMBER = 99999
MAX_ATTEMPTS = 100


class ReferenceGenerator:
    """
    Generate PREFIX-NNNNN references, retrying on collision.

    Args:
        exists: Returns True when a reference is already taken
        prefix: Reference prefix (default BOOKING_REF_PREFIX)
        rng: Random source; pass a seeded random.Random for reproducible output
        max_attempts: Collisions tolerated before giving up
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        prefix: str = BOOKING_REF_PREFIX,
        rng: Optional[random.Random] = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.exists = exists
        self.prefix = prefix
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts

    def candidate(self) -> str:
        return f"{self.prefix}-{self.rng.randint(MIN_NUMBER, MAX_NUMBER)}"

    def generate(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            reference = self.candidate()
            if not self.exists(reference):
                return reference
            logger.debug(f"Booking reference {reference} taken (attempt {attempt})")

        logger.error(f"❌ No free booking reference after {self.max_attempts} attempts")
        raise ReferenceGenerationFailedError(
            f"Failed to generate a unique booking reference after {self.max_attempts} attempts"
        )
