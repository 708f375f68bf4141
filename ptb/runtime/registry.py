"""
ptb.runtime.registry — entry-function handlers for the simulated engine.

An `Invoke` command names `package::module::function`. The simulated engine looks that
target up here and calls the handler as `handler(ctx, *args)`, where `ctx` is a
`CallContext` and `args` are the resolved argument values. A handler returns None, a
single value, or a tuple of values (the command's outputs).

Handlers can be registered one at a time, as a decorator, per module mapping, or by
dotted Python reference (`"myapp.contracts.fund.join"`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import import_module
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

from ..types.ids import HexLike, ObjectId

log = logging.getLogger(__name__)

Handler = Callable[..., Any]


@dataclass(frozen=True)
class HandlerRecord:
    package: ObjectId
    module: str
    function: str
    handler: Handler

    @property
    def target(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"


def _split_target(target: str) -> Tuple[ObjectId, str, str]:
    parts = target.split("::")
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"target must be 'package::module::function', got {target!r}")
    return ObjectId(parts[0]), parts[1], parts[2]


class FunctionRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[Tuple[ObjectId, str, str], HandlerRecord] = {}

    def register(self, target: str, handler: Handler) -> HandlerRecord:
        package, module, function = _split_target(target)
        rec = HandlerRecord(package, module, function, handler)
        self._handlers[(package, module, function)] = rec
        log.debug("registered handler %s", rec.target)
        return rec

    def entry(self, target: str) -> Callable[[Handler], Handler]:
        """Decorator form of `register`."""
        def deco(fn: Handler) -> Handler:
            self.register(target, fn)
            return fn
        return deco

    def register_module(self, package: HexLike, module: str, functions: Mapping[str, Handler]) -> None:
        pkg = ObjectId(package)
        for name, fn in functions.items():
            self.register(f"{pkg}::{module}::{name}", fn)

    def register_ref(self, target: str, python_ref: str) -> HandlerRecord:
        """Register `module.path.func` (imported now; import errors propagate)."""
        module_name, func_name = python_ref.rsplit(".", 1)
        handler = getattr(import_module(module_name), func_name)
        return self.register(target, handler)

    def alias_package(self, source: HexLike, dest: HexLike) -> int:
        """Copy every handler of `source` to `dest` (package upgrades). Returns the count."""
        src, dst = ObjectId(source), ObjectId(dest)
        copied = [rec for (pkg, _, _), rec in self._handlers.items() if pkg == src]
        for rec in copied:
            self._handlers[(dst, rec.module, rec.function)] = HandlerRecord(dst, rec.module, rec.function, rec.handler)
        return len(copied)

    def lookup(self, package: HexLike, module: str, function: str) -> Optional[HandlerRecord]:
        return self._handlers.get((ObjectId(package), module, function))

    def has_package(self, package: HexLike) -> bool:
        pkg = ObjectId(package)
        return any(p == pkg for (p, _, _) in self._handlers)

    def __iter__(self) -> Iterator[HandlerRecord]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)


__all__ = ["Handler", "HandlerRecord", "FunctionRegistry"]
