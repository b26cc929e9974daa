"""Application layer - Interceptor chain."""

from typing import Any, Callable, Sequence

from plugkit.application.execution_context import ExecutionContext
from plugkit.domain import ICallHandler, IInterceptor, PipelineError


class HandlerCall(ICallHandler):
    """Terminal link of the chain, invoking the handler itself."""

    def __init__(self, call: Callable[[], Any]) -> None:
        self._call = call

    def handle(self) -> Any:
        return self._call()


class InterceptorCall(ICallHandler):
    """Link of the chain running one interceptor around the inner links."""

    def __init__(self, interceptor: IInterceptor, context: ExecutionContext, next_handler: ICallHandler) -> None:
        self._interceptor = interceptor
        self._context = context
        self._next = next_handler

    def handle(self) -> Any:
        return self._interceptor.intercept(self._context, _OnceCallHandler(self._next))


class _OnceCallHandler(ICallHandler):
    def __init__(self, inner: ICallHandler) -> None:
        self._inner = inner
        self._called = False

    def handle(self) -> Any:
        if self._called:
            raise PipelineError("next.handle() may be called at most once per interceptor")
        self._called = True
        return self._inner.handle()


class InterceptorsConsumer:
    """Composes interceptors around a handler call.

    The first interceptor is the outermost layer: with ``[A, B]`` the order is
    A before, B before, handler, B after, A after. An interceptor that never
    calls ``next.handle()`` short-circuits every inner layer and the handler.
    """

    def intercept(
        self, interceptors: Sequence[IInterceptor], context: ExecutionContext, call: Callable[[], Any]
    ) -> Any:
        chain: ICallHandler = HandlerCall(call)
        for interceptor in reversed(interceptors):
            chain = InterceptorCall(interceptor, context, chain)
        return chain.handle()
