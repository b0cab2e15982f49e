import pytest

from lightbnb.domain.money import dollars_to_cents
from lightbnb.domain.results import QueryResult, QueryStatus


@pytest.mark.parametrize("dollars,cents", [
    (50, 5000),
    (19.99, 1999),
    ("12.5", 1250),
    (0.005, 1),
    (0.001, 0),
    (0, 0),
])
def test_dollars_to_cents(dollars, cents):
    assert dollars_to_cents(dollars) == cents


def test_result_states():
    ok = QueryResult.found([])
    assert ok.ok and ok.unwrap() == []
    nf = QueryResult.not_found()
    assert nf.status is QueryStatus.NOT_FOUND and nf.value is None
    bad = QueryResult.failed("boom")
    assert bad.is_failed and bad.error == "boom" and bad.value is None
