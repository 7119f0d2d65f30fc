"""Tracing handles passed to agents.

An agent records one span per task and one generation per completed model
turn. Sinks implement :class:`Tracer`; :class:`NullTracer` discards
everything and :class:`LoggingTracer` writes the events to the package
logger and keeps them in memory.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol, runtime_checkable

from .logging import get_logger
from .types import UsageStats

logger = get_logger(__name__)


@runtime_checkable
class Tracer(Protocol):
    """Interface of a tracing sink."""

    def create_span(self, name: str, input: Any = None) -> None:
        ...

    def finish_current_span(self, output: Any = None) -> None:
        ...

    def record_generation(
        self,
        name: str,
        model: str | None,
        input: Any,
        output: str | None,
        usage: UsageStats | None = None,
    ) -> None:
        ...


class NullTracer:
    """Tracer that records nothing."""

    def create_span(self, name: str, input: Any = None) -> None:
        pass

    def finish_current_span(self, output: Any = None) -> None:
        pass

    def record_generation(self, name, model, input, output, usage=None) -> None:
        pass


@dataclass
class SpanRecord:
    name: str
    input: Any = None
    output: Any = None
    started_at: float = field(default_factory=time.monotonic)
    finished_at: float | None = None

    @property
    def duration(self) -> float | None:
        if self.finished_at is None:
            return None
        return self.finished_at - self.started_at


@dataclass
class GenerationRecord:
    name: str
    model: str | None
    input: Any
    output: str | None
    usage: UsageStats | None = None


class LoggingTracer:
    """Tracer that logs spans and generations.

    Spans nest: :meth:`finish_current_span` closes the most recently opened
    one. Finished spans and all generations are kept on the instance.
    """

    def __init__(self, name: str = "request"):
        self.name = name
        self.spans: list[SpanRecord] = []
        self.generations: list[GenerationRecord] = []
        self._open: list[SpanRecord] = []

    def create_span(self, name: str, input: Any = None) -> None:
        self._open.append(SpanRecord(name=name, input=input))
        logger.info(f"[{self.name}] span started: {name}")

    def finish_current_span(self, output: Any = None) -> None:
        if not self._open:
            logger.warning(f"[{self.name}] finish_current_span called without an open span")
            return
        span = self._open.pop()
        span.output = output
        span.finished_at = time.monotonic()
        self.spans.append(span)
        logger.info(f"[{self.name}] span finished: {span.name} ({span.duration:.2f}s)")

    def record_generation(
        self,
        name: str,
        model: str | None,
        input: Any,
        output: str | None,
        usage: UsageStats | None = None,
    ) -> None:
        self.generations.append(GenerationRecord(name, model, input, output, usage))
        if usage:
            logger.info(
                f"[{self.name}] generation {name} ({model}): "
                f"{usage.prompt_tokens} prompt + {usage.completion_tokens} completion tokens"
            )
        else:
            logger.info(f"[{self.name}] generation {name} ({model})")

    @property
    def total_usage(self) -> UsageStats:
        total = UsageStats(0, 0, 0)
        for generation in self.generations:
            if generation.usage:
                total = total + generation.usage
        return total


@dataclass
class SpanScope:
    """Output holder for a span opened with :func:`traced_span`."""
    output: Any = None


@contextmanager
def traced_span(tracer: Tracer, name: str, input: Any = None) -> Iterator[SpanScope]:
    """Open a span on ``tracer`` and finish it when the block exits.

    The block sets ``scope.output``. If it raises, the span is finished with
    the error message and the exception propagates.

    Example:
        with traced_span(tracer, "goal_generation", input=prompt) as scope:
            scope.output = generate()
    """
    tracer.create_span(name=name, input=input)
    scope = SpanScope()
    try:
        yield scope
    except Exception as e:
        scope.output = {"error": str(e)}
        raise
    finally:
        tracer.finish_current_span(output=scope.output)
