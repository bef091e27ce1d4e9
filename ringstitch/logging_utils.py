from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxlist = 6
_repr.maxtuple = 6
_repr.maxdict = 6


def _is_point(value: Any) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 3
        and all(isinstance(v, (int, float)) for v in value)
    )


def summarize(value: Any, *, max_items: int = 4, max_length: int = 300) -> str:
    """Compact rendering used by the DEBUG call tracer.

    Arrays are reduced to shape/range, 3D points are printed with fixed
    precision and long sequences only show their length and first entries.
    """

    if isinstance(value, np.ndarray):
        if value.size == 0:
            return f"ndarray(shape={tuple(value.shape)})"
        if value.size <= 3:
            return "ndarray(" + ", ".join(f"{float(v):.4g}" for v in value.ravel()) + ")"
        return (
            f"ndarray(shape={tuple(value.shape)}, min={float(value.min()):.4g}, "
            f"max={float(value.max()):.4g})"
        )
    if _is_point(value):
        return "(" + ", ".join(f"{float(v):.4g}" for v in value) + ")"
    if isinstance(value, dict):
        items = [f"{summarize(k)}: {summarize(v)}" for k, v in list(value.items())[:max_items]]
        if len(value) > max_items:
            items.append(f"... {len(value)} keys")
        return "{" + ", ".join(items) + "}"
    if isinstance(value, (list, tuple)):
        head = [summarize(item) for item in list(value)[:max_items]]
        if len(value) > max_items:
            head.append(f"... {len(value)} items")
        open_br, close_br = ("(", ")") if isinstance(value, tuple) else ("[", "]")
        return open_br + ", ".join(head) + close_br

    rendered = _repr.repr(value)
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [summarize(arg) for arg in args]
    parts.extend(f"{key}={summarize(value)}" for key, value in kwargs.items())
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that traces calls of the wrapped function at DEBUG level."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("-> %s(%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.exception("Exception in %s", qualname)
                raise
            if log_result:
                logger.debug("<- %s = %s", qualname, summarize(result))
            else:
                logger.debug("<- %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap the public functions defined in ``namespace`` with :func:`debug_log_call`.

    Private helpers (leading underscore) are left alone so the trace stays at
    the level of pipeline operations.
    """

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):
        module_name = __name__
    logger = logger or logging.getLogger(module_name)
    skip_set: Set[str] = set(skip or [])

    for attr, value in list(namespace.items()):
        if attr.startswith("_") or attr in skip_set:
            continue
        if inspect.isfunction(value) and getattr(value, "__module__", None) == module_name:
            namespace[attr] = debug_log_call(logger, name=attr)(value)
