"""Service container.

Maps types to factories. Handlers and controller constructors receive
services by annotating a parameter with the type::

    app.provide(Database, lambda: Database(DSN), shared=True)

    @app.route("/users")
    def users(db: Database): ...

Concrete classes that were never registered are autowired: the container
calls the constructor, building each annotated constructor argument the
same way.
"""

import inspect
import threading
from typing import Any

from wren._internal.types import Factory
from wren.errors import UnresolvableDependency


class Container:
    """Type-keyed service registry with autowiring."""

    __slots__ = ("_factories", "_instances", "_lock", "_shared")

    def __init__(self) -> None:
        self._factories: dict[type, Factory] = {}
        self._shared: set[type] = set()
        self._instances: dict[type, Any] = {}
        self._lock = threading.Lock()

    def provide(self, key: type, factory: Factory, *, shared: bool = False) -> None:
        """Register *factory* for *key*.

        A shared factory runs once; later lookups return the same object.
        Otherwise every lookup calls the factory again.
        """
        self._factories[key] = factory
        self._instances.pop(key, None)
        if shared:
            self._shared.add(key)
        else:
            self._shared.discard(key)

    def instance(self, key: type, obj: Any) -> None:
        """Register an already-built object for *key*."""
        self._factories.pop(key, None)
        self._shared.discard(key)
        self._instances[key] = obj

    def has(self, key: Any) -> bool:
        """True if *key* is registered or can be autowired."""
        return key in self._instances or key in self._factories or _autowirable(key)

    def get(self, key: Any) -> Any:
        """Return the service for *key*.

        Raises:
            UnresolvableDependency: *key* is unknown, or a constructor
                argument of an autowired class cannot be built.
        """
        return self._get(key, ())

    def _get(self, key: Any, chain: tuple[type, ...]) -> Any:
        if key in self._instances:
            return self._instances[key]

        factory = self._factories.get(key)
        if factory is not None:
            if key not in self._shared:
                return factory()
            with self._lock:
                if key not in self._instances:
                    self._instances[key] = factory()
                return self._instances[key]

        if _autowirable(key):
            return self._autowire(key, chain)

        name = getattr(key, "__qualname__", repr(key))
        raise UnresolvableDependency(name, "container", "no provider registered")

    def _autowire(self, cls: type, chain: tuple[type, ...]) -> Any:
        from wren.binding import compile_bindings

        if cls in chain:
            cycle = " -> ".join(c.__qualname__ for c in (*chain, cls))
            raise UnresolvableDependency(cls.__qualname__, "container", f"circular dependency {cycle}")

        init = cls.__init__
        if init is object.__init__:
            return cls()

        kwargs: dict[str, Any] = {}
        for binding in compile_bindings(init, skip_first=True):
            service = binding.service
            if service is not None and self.has(service):
                try:
                    kwargs[binding.name] = self._get(service, (*chain, cls))
                    continue
                except UnresolvableDependency:
                    if not (binding.has_default or binding.nullable):
                        raise
            if binding.has_default:
                kwargs[binding.name] = binding.default
            elif binding.nullable:
                kwargs[binding.name] = None
            else:
                raise UnresolvableDependency(binding.name, cls.__qualname__)
        return cls(**kwargs)


def _autowirable(key: Any) -> bool:
    if not isinstance(key, type) or key.__module__ == "builtins":
        return False
    # Protocols and abstract classes need an explicit provider
    return not (inspect.isabstract(key) or getattr(key, "_is_protocol", False))
