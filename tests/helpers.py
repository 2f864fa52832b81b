"""
Shared constants and test doubles.
"""
import random
from datetime import date

TEST_UID = "firebase-uid-123"
TEST_EMAIL = "monster.slayer@example.com"

# A fixed calendar day so date arithmetic in tests is explicit
TODAY = date(2024, 5, 10)


class FixedRoll(random.Random):
    """Random source whose randint always returns the same value."""

    def __init__(self, value: int):
        super().__init__(0)
        self.value = value

    def randint(self, a, b):
        assert a <= self.value <= b
        return self.value
