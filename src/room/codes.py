"""
Room Code Generation

Room codes are fixed-length numeric strings. Issued codes are not
remembered, so a collision with a live session is possible but negligible
for the handful of participants a room serves.
"""

import random
from typing import Optional

CODE_LENGTH = 10
CODE_MIN = 10 ** (CODE_LENGTH - 1)
CODE_MAX = 10 ** CODE_LENGTH  # exclusive


class RoomCodeGenerator:
    """Draws room codes uniformly from [CODE_MIN, CODE_MAX)."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the generator.

        Args:
            rng: Optional random source (for deterministic tests)
        """
        self._rng = rng or random.SystemRandom()

    def generate(self) -> str:
        return str(self._rng.randrange(CODE_MIN, CODE_MAX))
