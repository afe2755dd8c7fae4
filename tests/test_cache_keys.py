from health_insights.cache import cache_key, fingerprint


def test_cache_key_stable() -> None:
    data = [{"region": "A", "cases": 10}]
    key = cache_key("answer", "How many cases?", data)
    assert key == cache_key("answer", "How many cases?", [{"region": "A", "cases": 10}])
    assert key.startswith("cache:v1:answer:")


def test_cache_key_varies_with_kind_and_request() -> None:
    data = [{"region": "A", "cases": 10}]
    assert cache_key("answer", "q1", data) != cache_key("answer", "q2", data)
    assert cache_key("answer", "q1", data) != cache_key("visualization", "q1", data)


def test_fingerprint_only_sees_data_prefix() -> None:
    shared = [{"region": f"Region {index}", "cases": index} for index in range(20)]
    extended = shared + [{"region": "Z", "cases": 999}]
    assert fingerprint("q", shared) == fingerprint("q", extended)
    assert fingerprint("q", shared) != fingerprint("q", [{"region": "Other", "cases": 1}])
