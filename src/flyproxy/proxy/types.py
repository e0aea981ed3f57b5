# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Proxy core types — MethodIdentity, Invocation and InterceptorArgs."""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any

from flyproxy.kernel.exceptions import InvalidInvocationException
from flyproxy.proxy.introspection import contract_origin, is_void, resolved_signature

MethodInvoker = Callable[[Any, tuple[Any, ...]], Any]
"""Performs the real call: ``(instance, arguments) -> result``."""


class MethodKind(Enum):
    """How a member is reached on the real target."""

    METHOD = "method"
    GETTER = "getter"
    SETTER = "setter"
    STATIC = "static"


@dataclass(frozen=True)
class MethodIdentity:
    """A member resolved against the interface it was declared on.

    Identities built by a proxy type always name the *declared* contract
    (``Repository[User]``, not the synthesized class), so an interceptor
    sees the same identity whatever implementation backs the proxy.

    Attributes:
        interface: The declaring contract, possibly a parameterised alias.
        name: Attribute name of the member.
        function: The declared function (the getter or setter for properties).
        kind: How the member is dispatched.
        type_arguments: Generic instantiation of the method, empty otherwise.
    """

    interface: Any
    name: str
    function: Callable[..., Any] = field(repr=False)
    kind: MethodKind = MethodKind.METHOD
    type_arguments: tuple[Any, ...] = ()

    @classmethod
    def of(cls, owner: type, name: str, kind: MethodKind | None = None) -> MethodIdentity:
        """Resolve *name* on any class, e.g. to build a standalone invoker.

        Pass ``kind=MethodKind.SETTER`` to address a property's setter.
        """
        raw = inspect.getattr_static(owner, name)
        if isinstance(raw, staticmethod):
            return cls(owner, name, raw.__func__, MethodKind.STATIC)
        if isinstance(raw, classmethod):
            return cls(owner, name, getattr(owner, name), MethodKind.STATIC)
        if isinstance(raw, property):
            if kind is MethodKind.SETTER:
                if raw.fset is None:
                    raise TypeError(f"{owner.__qualname__}.{name} has no setter")
                return cls(owner, name, raw.fset, MethodKind.SETTER)
            if raw.fget is None:
                raise TypeError(f"{owner.__qualname__}.{name} has no getter")
            return cls(owner, name, raw.fget, MethodKind.GETTER)
        if inspect.isfunction(raw):
            return cls(owner, name, raw)
        raise TypeError(f"{owner.__qualname__}.{name} is not a method")

    @cached_property
    def signature(self) -> inspect.Signature:
        return resolved_signature(self.function)

    @cached_property
    def parameters(self) -> tuple[inspect.Parameter, ...]:
        """Declared parameters without the receiver."""
        params = tuple(self.signature.parameters.values())
        return params if self.is_static else params[1:]

    @property
    def is_static(self) -> bool:
        return self.kind is MethodKind.STATIC

    @property
    def declaring_type(self) -> type | None:
        return contract_origin(self.interface)

    @property
    def return_annotation(self) -> Any:
        if self.kind is MethodKind.SETTER:
            return None
        return self.signature.return_annotation

    @property
    def is_void(self) -> bool:
        return is_void(self.return_annotation)

    @property
    def qualified_name(self) -> str:
        owner = self.declaring_type
        prefix = owner.__qualname__ if owner is not None else repr(self.interface)
        return f"{prefix}.{self.name}"

    def with_type_arguments(self, type_arguments: tuple[Any, ...]) -> MethodIdentity:
        identity = dataclasses.replace(self, type_arguments=tuple(type_arguments))
        # Same function, same signature: reuse what was already resolved.
        for cached in ("signature", "parameters"):
            if cached in self.__dict__:
                identity.__dict__[cached] = self.__dict__[cached]
        return identity

    def __str__(self) -> str:
        if not self.type_arguments:
            return self.qualified_name
        args = ", ".join(getattr(a, "__name__", repr(a)) for a in self.type_arguments)
        return f"{self.qualified_name}[{args}]"


@dataclass(frozen=True)
class Invocation:
    """Snapshot of one call: the method and its arguments in declaration order.

    ``*args`` occupies a single slot holding a tuple and ``**kwargs`` a
    single slot holding a dict, so ``len(arguments)`` always equals
    ``len(method.parameters)``.
    """

    method: MethodIdentity
    arguments: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.arguments, tuple):
            object.__setattr__(self, "arguments", tuple(self.arguments))
        expected = len(self.method.parameters)
        if len(self.arguments) != expected:
            raise InvalidInvocationException(
                str(self.method), f"expected {expected} argument slot(s), got {len(self.arguments)}"
            )

    @property
    def named_arguments(self) -> dict[str, Any]:
        return {p.name: value for p, value in zip(self.method.parameters, self.arguments)}

    def argument(self, name: str) -> Any:
        """Look up an argument by parameter name."""
        for parameter, value in zip(self.method.parameters, self.arguments):
            if parameter.name == name:
                return value
        raise KeyError(name)

    def with_arguments(self, *arguments: Any) -> Invocation:
        """A new record for the same method, e.g. to rewrite arguments before proceeding."""
        return Invocation(self.method, arguments)


class InterceptorArgs:
    """The mutable call context handed to exactly one interceptor.

    ``proceed()`` runs the real method on the bound target with the current
    invocation's arguments and overwrites ``result`` every time it is
    called. An interceptor that never proceeds supplies ``result`` itself;
    if it leaves it alone the caller receives ``None``.

    Attributes:
        result: The value handed back to the caller once ``handle`` returns.
    """

    __slots__ = ("_target", "_invoker", "_invocation", "result")

    def __init__(self, target: Any, invoker: MethodInvoker, invocation: Invocation) -> None:
        self._target = target
        self._invoker = invoker
        self._invocation = invocation
        self.result: Any = None

    @property
    def invocation(self) -> Invocation:
        return self._invocation

    @invocation.setter
    def invocation(self, invocation: Invocation) -> None:
        if invocation.method != self._invocation.method:
            raise InvalidInvocationException(
                str(self._invocation.method), f"cannot be replaced by an invocation of {invocation.method}"
            )
        self._invocation = invocation

    @property
    def method(self) -> MethodIdentity:
        return self._invocation.method

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self._invocation.arguments

    @property
    def has_target(self) -> bool:
        return self._target is not None

    def proceed(self) -> Any:
        """Call the real method and store its outcome in ``result``."""
        self.result = self._invoker(self._target, self._invocation.arguments)
        return self.result

    def __repr__(self) -> str:
        return f"InterceptorArgs(method={self.method}, arguments={self.arguments!r}, result={self.result!r})"
