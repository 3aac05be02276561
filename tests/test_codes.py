"""
Tests for Room Code Generation
"""

import random

from room import RoomCodeGenerator
from room.codes import CODE_LENGTH, CODE_MAX, CODE_MIN


def test_code_is_ten_numeric_digits():
    code = RoomCodeGenerator().generate()
    assert len(code) == CODE_LENGTH == 10
    assert code.isdigit()
    assert not code.startswith("0")


def test_codes_stay_within_range():
    generator = RoomCodeGenerator(random.Random(1234))
    for _ in range(200):
        value = int(generator.generate())
        assert CODE_MIN <= value < CODE_MAX


def test_seeded_generator_is_deterministic():
    first = RoomCodeGenerator(random.Random(42))
    second = RoomCodeGenerator(random.Random(42))
    assert [first.generate() for _ in range(5)] == [
        second.generate() for _ in range(5)
    ]


def test_codes_rarely_collide():
    generator = RoomCodeGenerator(random.Random(99))
    codes = {generator.generate() for _ in range(1000)}
    assert len(codes) == 1000
