from netwire.rng import get_random_engine


def test_engines_are_independently_seeded():
    first = get_random_engine()
    second = get_random_engine()
    assert [first.getrandbits(32) for _ in range(8)] != [second.getrandbits(32) for _ in range(8)]


def test_values_stay_in_range():
    engine = get_random_engine()
    values = [engine.getrandbits(32) for _ in range(1000)]
    assert all(0 <= value < 2**32 for value in values)
    assert len(set(values)) > 1


def test_engine_supports_shuffle_preserving_elements():
    engine = get_random_engine()
    items = list(range(50))
    engine.shuffle(items)
    assert sorted(items) == list(range(50))