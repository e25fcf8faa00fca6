"""Exceptions raised by the procfs extraction layer."""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from proctop.logs import get_logger

_logger = get_logger("errors")

F = TypeVar("F", bound=Callable[..., Any])


class ProctopError(Exception):
    """Base class for proctop errors."""


class MalformedNumericError(ProctopError, ValueError):
    """A token that should hold a number could not be parsed.

    Missing files and absent fields resolve to defaults where they occur; a
    malformed number is raised so a layout mismatch does not read as 0.
    """

    def __init__(self, token: str, *, source: str = "", field: str = "") -> None:
        self.token = token
        self.source = source
        self.field = field
        super().__init__(f"{source}: field {field!r} is not numeric: {token!r}")


def on_malformed(default: Any) -> Callable[[F], F]:
    """Resolve a MalformedNumericError raised by ``func`` to ``default``.

    The error is logged as a ``malformed_numeric`` warning carrying the
    source file, field and offending token, so the display layer always gets a
    value while the mismatch stays visible in the logs.
    """

    def decorate(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except MalformedNumericError as exc:
                _logger.warning(
                    "malformed_numeric",
                    operation=func.__qualname__,
                    source=exc.source,
                    field=exc.field,
                    token=exc.token,
                )
                return default

        return wrapper  # type: ignore[return-value]

    return decorate
