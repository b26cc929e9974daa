"""Unit tests for InterceptorsConsumer."""

import pytest

from plugkit.application.execution_context import ExecutionContext
from plugkit.application.interceptors import InterceptorsConsumer
from plugkit.domain import IInterceptor, PipelineError


class RecordingInterceptor(IInterceptor):
    def __init__(self, label, events):
        self.label = label
        self.events = events

    def intercept(self, context, next):
        self.events.append(f"{self.label}.enter")
        result = next.handle()
        self.events.append(f"{self.label}.exit")
        return result


class TestInterceptorsConsumer:
    """Test cases for the interceptor chain."""

    def test_first_interceptor_is_outermost(self):
        """Test the nesting order of the chain."""
        events = []

        def handler():
            events.append("handle")
            return "result"

        result = InterceptorsConsumer().intercept(
            [RecordingInterceptor("A", events), RecordingInterceptor("B", events)], ExecutionContext(), handler
        )

        assert result == "result"
        assert events == ["A.enter", "B.enter", "handle", "B.exit", "A.exit"]

    def test_no_interceptors_calls_handler(self):
        """Test that the handler runs directly without interceptors."""
        assert InterceptorsConsumer().intercept([], ExecutionContext(), lambda: 42) == 42

    def test_interceptor_can_transform_result(self):
        """Test that an interceptor can map the handler result."""

        class Wrap(IInterceptor):
            def intercept(self, context, next):
                return {"data": next.handle()}

        assert InterceptorsConsumer().intercept([Wrap()], ExecutionContext(), lambda: [1, 2]) == {"data": [1, 2]}

    def test_interceptor_can_short_circuit(self):
        """Test that skipping next.handle() skips the handler."""
        calls = []

        class Cached(IInterceptor):
            def intercept(self, context, next):
                return "cached"

        def handler():
            calls.append(1)

        result = InterceptorsConsumer().intercept([Cached()], ExecutionContext(), handler)

        assert result == "cached"
        assert calls == []

    def test_next_handle_twice_raises(self):
        """Test that the handler cannot be invoked twice by one interceptor."""

        class Retry(IInterceptor):
            def intercept(self, context, next):
                next.handle()
                return next.handle()

        with pytest.raises(PipelineError):
            InterceptorsConsumer().intercept([Retry()], ExecutionContext(), lambda: None)

    def test_interceptor_receives_context(self):
        """Test that the execution context is handed to interceptors."""
        seen = []
        context = ExecutionContext()

        class Spy(IInterceptor):
            def intercept(self, ctx, next):
                seen.append(ctx)
                return next.handle()

        InterceptorsConsumer().intercept([Spy()], context, lambda: None)

        assert seen == [context]
