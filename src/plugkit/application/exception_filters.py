"""Application layer - Exception phase."""

import html
import logging
import traceback
from typing import Any, Dict, Sequence, Tuple, Type

from plugkit.application.execution_context import ExecutionContext
from plugkit.application.reflector import MetadataKeys, Reflector
from plugkit.domain import ErrorResponse, HttpException, IExceptionFilter, PluginSettings, ResponseKind

logger = logging.getLogger(__name__)

_ERROR_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p>{message}</p>
{details}
</body>
</html>
"""


class CoreExceptionFilter(IExceptionFilter):
    """Fallback filter producing a response for any error. Never raises.

    The response kind follows the context: HTTP-originated invocations get a
    status-coded payload, non-HTTP callers expecting data get a structured
    payload, anything else gets an error page. Errors that are not
    ``HttpException`` are reported as 500 with a generic message, their
    details only shown in debug mode.

    Attributes:
        settings: Plugin settings, for the debug switch and page title.
    """

    def __init__(self, settings: PluginSettings) -> None:
        self.settings = settings

    def catch_exception(self, error: Exception, context: ExecutionContext) -> ErrorResponse:
        debug = self.settings.debug
        if isinstance(error, HttpException):
            message, status_code = error.message, error.status_code
            errors, reason = error.errors, error.reason
        else:
            logger.exception("Unhandled error in %s", context.get_handler_name() or "invocation", exc_info=error)
            message = (str(error) or type(error).__name__) if debug else "Internal server error"
            status_code, errors, reason = 500, None, None

        kind = self._response_kind(context)
        fields: Dict[str, Any] = {}
        if debug:
            fields.update(self._debug_fields(error))
        response = ErrorResponse(
            kind=kind,
            message=message,
            status_code=status_code,
            errors=errors,
            reason=reason,
            **fields,
        )
        if kind == ResponseKind.ERROR_PAGE:
            response = response.model_copy(update={"html": self._render_page(response)})
        return response

    @staticmethod
    def _response_kind(context: ExecutionContext) -> ResponseKind:
        if context.switch_to_rest_context() is not None:
            return ResponseKind.HTTP
        if context.expects_json:
            return ResponseKind.STRUCTURED
        return ResponseKind.ERROR_PAGE

    def _debug_fields(self, error: Exception) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "filter_name": type(self).__name__,
            "stack_trace": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
        frames = traceback.extract_tb(error.__traceback__)
        if frames:
            fields["file"] = frames[-1].filename
            fields["line"] = frames[-1].lineno
        return fields

    def _render_page(self, response: ErrorResponse) -> str:
        details = ""
        if response.errors:
            items = "".join(
                f"<li><strong>{html.escape(field)}</strong>: {html.escape(message)}</li>"
                for field, message in response.errors.items()
            )
            details += f"<ul>{items}</ul>"
        if response.stack_trace:
            details += f"<pre>{html.escape(response.stack_trace)}</pre>"
        return _ERROR_PAGE.format(
            title=html.escape(self.settings.error_page_title),
            message=html.escape(response.message),
            details=details,
        )


class ExceptionFiltersHandler:
    """Walks exception filters most-specific-first.

    Candidates are method filters, class filters, global filters, then the
    core fallback. A filter restricted with ``catch`` is skipped for errors of
    other types. A filter that raises hands its error to the next candidate.

    Attributes:
        _reflector: Used to read ``catch`` restrictions of filter classes.
        _fallback: The core filter, always last.
    """

    def __init__(self, reflector: Reflector, fallback: IExceptionFilter) -> None:
        self._reflector = reflector
        self._fallback = fallback

    def handle(self, error: Exception, filters: Sequence[IExceptionFilter], context: ExecutionContext) -> Any:
        for exception_filter in filters:
            if not self._catches(exception_filter, error):
                continue
            try:
                return exception_filter.catch_exception(error, context)
            except Exception as rethrown:
                logger.debug(
                    "%s passed %s on to the next filter", type(exception_filter).__name__, type(rethrown).__name__
                )
                error = rethrown
        return self._fallback.catch_exception(error, context)

    def _catches(self, exception_filter: IExceptionFilter, error: Exception) -> bool:
        exception_types: Tuple[Type[BaseException], ...] = tuple(
            self._reflector.get_type_args(type(exception_filter), MetadataKeys.CATCH)
        )
        return not exception_types or isinstance(error, exception_types)
