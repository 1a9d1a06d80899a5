import random
import re

import pytest

from tiling_api.domain.bookings.reference import MAX_NUMBER, MIN_NUMBER, ReferenceGenerator
from tiling_api.errors import ReferenceGenerationFailedError


def test_reference_format():
    generator = ReferenceGenerator(exists=lambda ref: False, rng=random.Random(7))

    for _ in range(50):
        reference = generator.generate()
        assert re.fullmatch(r"TR-\d{5}", reference)
        assert MIN_NUMBER <= int(reference[3:]) <= MAX_NUMBER


def test_seeded_generators_agree():
    first = ReferenceGenerator(exists=lambda ref: False, rng=random.Random(42))
    second = ReferenceGenerator(exists=lambda ref: False, rng=random.Random(42))

    assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]


def test_custom_prefix():
    generator = ReferenceGenerator(exists=lambda ref: False, prefix="RF", rng=random.Random(1))
    assert generator.generate().startswith("RF-")


def test_skips_taken_references():
    seen = []

    def exists(ref):
        seen.append(ref)
        return len(seen) < 3

    reference = ReferenceGenerator(exists=exists, rng=random.Random(3)).generate()

    assert len(seen) == 3
    assert reference == seen[-1]


def test_gives_up_after_max_attempts():
    calls = []

    def exists(ref):
        calls.append(ref)
        return True

    generator = ReferenceGenerator(exists=exists, rng=random.Random(5), max_attempts=100)
    with pytest.raises(ReferenceGenerationFailedError) as exc:
        generator.generate()

    assert len(calls) == 100
    assert exc.value.code == "REFERENCE_GENERATION_FAILED"
