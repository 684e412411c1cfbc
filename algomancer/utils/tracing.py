import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

_current_span: ContextVar[Optional['Span']] = ContextVar('current_span', default=None)

logger = logging.getLogger(__name__)


@dataclass
class Span:
    '''Timed section of an achievement evaluation.'''

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    parent: Optional['Span'] = None
    started: float = field(default_factory=time.perf_counter)
    ended: Optional[float] = None

    @property
    def duration_ms(self) -> float:
        end = self.ended if self.ended is not None else time.perf_counter()
        return (end - self.started) * 1000

    def annotate(self, **values: Any) -> None:
        self.metadata.update(values)

    def close(self) -> None:
        self.ended = time.perf_counter()
        details = ', '.join(f'{k}={v}' for k, v in self.metadata.items())
        where = f' (in {self.parent.name})' if self.parent else ''
        logger.info(f'{self.name}: {self.duration_ms:.2f}ms{where} [{details}]')


@contextmanager
def trace_span(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Span]:
    '''Time the enclosed block and log it on exit, nesting under any open span.

    Example:
        with trace_span('achievements.metrics', {'user_id': user_id}) as span:
            snapshot = aggregator.compute(user_id)
            span.annotate(total_logs=snapshot.total_logs)
    '''
    span = Span(name=name, metadata=dict(metadata or {}), parent=_current_span.get())
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.close()
        _current_span.reset(token)
