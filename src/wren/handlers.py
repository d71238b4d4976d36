"""Route handler variants.

A route's handler is either a plain callable or a controller method.
Both are resolved when the app freezes: controller classes are imported,
methods are looked up, and parameter bindings are compiled. A typo in a
controller reference therefore stops startup instead of failing the
first request that reaches the route.

Controller references::

    app.get("/users", "UserController@index")               # namespace module
    app.get("/users", "myapp.users:UserController@index")   # explicit module
    app.get("/users", (UserController, "index"))            # class object
    app.get("/users", ("myapp.users.UserController", "index"))
"""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wren._internal.invoke import invoke
from wren.binding import ParameterBinding, compile_bindings, describe, resolve_arguments
from wren.errors import ConfigurationError, HandlerNotFound

if TYPE_CHECKING:
    from wren.container import Container
    from wren.http.request import Request

logger = logging.getLogger("wren.app")


@dataclass(frozen=True, slots=True)
class FunctionHandler:
    """A plain sync or async callable."""

    func: Callable[..., Any]
    bindings: tuple[ParameterBinding, ...] = ()

    @classmethod
    def compile(cls, func: Callable[..., Any]) -> FunctionHandler:
        return cls(func=func, bindings=compile_bindings(func))

    @property
    def name(self) -> str:
        return describe(self.func)

    async def __call__(self, request: Request, container: Container) -> Any:
        kwargs = resolve_arguments(self.bindings, request, container, self.name)
        return await invoke(self.func, **kwargs)


@dataclass(frozen=True, slots=True)
class ControllerHandler:
    """A method on a controller class.

    Per request the controller instance comes from the container, which
    autowires its constructor. Static and class methods are called on the
    class without instantiating it.
    """

    controller: type
    method: str
    bindings: tuple[ParameterBinding, ...] = ()
    on_class: bool = False

    @classmethod
    def compile(cls, controller: type, method: str) -> ControllerHandler:
        raw = inspect.getattr_static(controller, method, None)
        if raw is None or not callable(getattr(controller, method, None)):
            msg = f"Controller method {controller.__qualname__}.{method} not found"
            raise HandlerNotFound(msg)
        on_class = isinstance(raw, (staticmethod, classmethod))
        func = getattr(controller, method)
        return cls(
            controller=controller,
            method=method,
            bindings=compile_bindings(func, skip_first=not on_class),
            on_class=on_class,
        )

    @property
    def name(self) -> str:
        return f"{describe(self.controller)}.{self.method}"

    async def __call__(self, request: Request, container: Container) -> Any:
        target = self.controller if self.on_class else container.get(self.controller)
        kwargs = resolve_arguments(self.bindings, request, container, self.name)
        return await invoke(getattr(target, self.method), **kwargs)


def resolve_handler(target: Any, *, namespace: str = "") -> FunctionHandler | ControllerHandler:
    """Turn a registered handler reference into a handler variant.

    Raises:
        HandlerNotFound: A controller class or method does not exist.
        ConfigurationError: *target* is not a recognizable reference.
    """
    if isinstance(target, (FunctionHandler, ControllerHandler)):
        return target

    if isinstance(target, str):
        class_ref, sep, method = target.rpartition("@")
        if not sep or not class_ref or not method:
            msg = f"Handler string {target!r} must look like 'Controller@method'"
            raise ConfigurationError(msg)
        return ControllerHandler.compile(load_controller(class_ref, namespace), method)

    if isinstance(target, tuple):
        if len(target) != 2 or not isinstance(target[1], str):
            msg = f"Controller tuple must be (controller, 'method'), got {target!r}"
            raise ConfigurationError(msg)
        controller, method = target
        if isinstance(controller, str):
            controller = load_controller(controller, namespace)
        if not isinstance(controller, type):
            msg = f"Controller must be a class or import path, got {controller!r}"
            raise ConfigurationError(msg)
        return ControllerHandler.compile(controller, method)

    if isinstance(target, type):
        # Invokable controller
        if any("__call__" in vars(klass) for klass in target.__mro__[:-1]):
            return ControllerHandler.compile(target, "__call__")
        msg = f"Controller class {target.__qualname__} needs a method, e.g. ({target.__qualname__}, 'index')"
        raise ConfigurationError(msg)

    if callable(target):
        return FunctionHandler.compile(target)

    msg = f"Route handler must be callable or a controller reference, got {target!r}"
    raise ConfigurationError(msg)


def load_controller(reference: str, namespace: str = "") -> type:
    """Import the controller class named by *reference*.

    *reference* is ``"module:Class"``, ``"package.module.Class"`` or a bare
    ``"Class"``. When it cannot be found as written and *namespace* is set,
    the lookup is retried once inside *namespace*.

    Raises:
        HandlerNotFound: Neither lookup found a class.
    """
    module_name, class_name = _split_reference(reference)

    if module_name:
        found = _import_class(module_name, class_name)
        if found is not None:
            return found

    if namespace:
        prefixed = f"{namespace}.{module_name}" if module_name else namespace
        logger.debug("Controller %r not found, retrying in %r", reference, prefixed)
        found = _import_class(prefixed, class_name)
        if found is not None:
            return found

    hint = f" (also tried namespace {namespace!r})" if namespace else ""
    msg = f"Controller class {reference!r} not found{hint}"
    raise HandlerNotFound(msg)


def _split_reference(reference: str) -> tuple[str, str]:
    if ":" in reference:
        module_name, _, class_name = reference.partition(":")
        return module_name, class_name
    module_name, _, class_name = reference.rpartition(".")
    return module_name, class_name


def _import_class(module_name: str, class_name: str) -> type | None:
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        # Only a missing target module counts as "not found"; a broken
        # import inside an existing module propagates.
        if exc.name is None or not module_name.startswith(exc.name):
            raise
        return None
    found = getattr(module, class_name, None)
    if isinstance(found, type):
        return found
    return None
