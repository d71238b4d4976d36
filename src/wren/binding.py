"""Handler argument binding.

Each handler signature is inspected once, when the app freezes, into a
tuple of ``ParameterBinding`` descriptors. Per request,
``resolve_arguments`` walks the descriptors and binds every parameter
from the first source that can supply it:

1. A value of the same name in ``request.inputs`` (path, body or query),
   passed through as-is.
2. The request itself, when annotated ``Request`` (or a subclass).
3. The service container, when it can build the annotated type.
4. The parameter's default value.
5. ``None``, when the annotation admits it (``X | None``).

A parameter no source can supply raises ``UnresolvableDependency``.
"""

from __future__ import annotations

import inspect
import logging
import types
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wren.errors import UnresolvableDependency
from wren.http.request import Request

if TYPE_CHECKING:
    from wren.container import Container

logger = logging.getLogger("wren.app")

_EMPTY = inspect.Parameter.empty
_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ParameterBinding:
    """How one handler parameter gets its value.

    ``service`` is the type asked of the container: the annotation with
    any ``None`` member removed, or ``None`` when the annotation is not a
    single class.
    """

    name: str
    annotation: Any = _EMPTY
    default: Any = _EMPTY
    nullable: bool = False
    is_request: bool = False
    service: type | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY


def compile_bindings(
    func: Callable[..., Any],
    *,
    skip_first: bool = False,
) -> tuple[ParameterBinding, ...]:
    """Inspect *func* and describe how to bind each of its parameters.

    Set *skip_first* for plain functions that will be called as bound
    methods, so ``self`` is not treated as a parameter. ``*args`` and
    ``**kwargs`` are ignored.
    """
    sig = inspect.signature(func, eval_str=True)
    params = list(sig.parameters.values())
    if skip_first and params:
        params = params[1:]

    bindings: list[ParameterBinding] = []
    for param in params:
        if param.kind in _SKIPPED_KINDS:
            continue
        annotation = param.annotation
        service = _service_type(annotation)
        bindings.append(
            ParameterBinding(
                name=param.name,
                annotation=annotation,
                default=param.default,
                nullable=_is_nullable(annotation),
                is_request=service is not None and issubclass(service, Request),
                service=service,
            )
        )
    return tuple(bindings)


def resolve_arguments(
    bindings: tuple[ParameterBinding, ...],
    request: Request,
    container: Container,
    target: str,
) -> dict[str, Any]:
    """Bind every parameter in *bindings* for one call.

    *target* names the handler in error messages.

    Raises:
        UnresolvableDependency: A parameter has no source. When the
            container was the last source tried, its error is chained.
    """
    kwargs: dict[str, Any] = {}
    inputs = request.inputs

    for binding in bindings:
        name = binding.name

        if name in inputs:
            kwargs[name] = inputs[name]
            continue

        if binding.is_request:
            kwargs[name] = request
            continue

        container_error: Exception | None = None
        if binding.service is not None and container.has(binding.service):
            try:
                kwargs[name] = container.get(binding.service)
                continue
            except Exception as exc:  # noqa: BLE001 — fall back to default / None
                logger.debug("Container could not build %r for %s: %s", binding.service, target, exc)
                container_error = exc

        if binding.has_default:
            kwargs[name] = binding.default
        elif binding.nullable:
            kwargs[name] = None
        elif container_error is not None:
            raise UnresolvableDependency(name, target, str(container_error)) from container_error
        else:
            raise UnresolvableDependency(name, target)

    return kwargs


def describe(func: Callable[..., Any]) -> str:
    """Human-readable name for *func* in error messages."""
    module = getattr(func, "__module__", None) or ""
    qualname = getattr(func, "__qualname__", None) or repr(func)
    return f"{module}.{qualname}" if module else qualname


def _is_nullable(annotation: Any) -> bool:
    if annotation is None or annotation is type(None):
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return type(None) in typing.get_args(annotation)
    return False


def _service_type(annotation: Any) -> type | None:
    if annotation is _EMPTY:
        return None
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            return None
        annotation = members[0]
    if isinstance(annotation, type) and typing.get_origin(annotation) is None:
        return annotation
    return None
