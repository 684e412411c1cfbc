import logging

from algomancer.utils.tracing import trace_span


def test_spans_nest_and_log(caplog):
    with caplog.at_level(logging.INFO, logger='algomancer.utils.tracing'):
        with trace_span('achievements.award', {'user_id': 1}) as outer:
            with trace_span('achievements.metrics') as inner:
                assert inner.parent is outer
            with trace_span('achievements.persist') as sibling:
                assert sibling.parent is outer
            outer.annotate(unlocked=2)

    with trace_span('achievements.snapshot') as after:
        assert after.parent is None

    assert outer.parent is None
    assert 'achievements.metrics' in caplog.text
    assert '(in achievements.award)' in caplog.text
    assert 'user_id=1, unlocked=2' in caplog.text
    assert outer.ended is not None
    assert outer.duration_ms >= inner.duration_ms


def test_span_closes_on_error():
    try:
        with trace_span('achievements.persist') as span:
            raise RuntimeError('db down')
    except RuntimeError:
        pass

    assert span.ended is not None
    with trace_span('achievements.award') as after:
        assert after.parent is None
