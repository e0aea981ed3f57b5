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
"""Type introspection shared by proxy synthesis and method invokers.

Python has no boxing, so the value/reference split is modelled explicitly:

* immutable scalars (``int``, ``float``, ``str``, ``Enum`` members, ...)
  are value types that never need copying;
* classes decorated with :func:`value_type` are mutable value types and are
  shallow-copied every time they are boxed or unboxed, so the receiving
  side never shares state with the caller;
* everything else is a reference type and is passed through as is.
"""

from __future__ import annotations

import abc
import copy
import inspect
import types
import typing
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, ForwardRef, Generic, Protocol, TypeVar, get_args, get_origin

from flyproxy.kernel.exceptions import InvalidContractException

C = TypeVar("C", bound=type)

_VALUE_TYPE_ATTR = "__flyproxy_value_type__"
_SCALAR_VALUE_TYPES: tuple[type, ...] = (int, float, complex, bool, str, bytes, Decimal, Enum)

# PEP 484 numeric tower: an int is acceptable where a float is declared.
_NUMERIC_PROMOTIONS: dict[type, tuple[type, ...]] = {float: (int,), complex: (int, float)}

_SKIPPED_BASES = frozenset({object, Generic, Protocol, abc.ABC})

# Dunders that shape the class or the proxy's own bindings rather than the contract.
_PLUMBING_DUNDERS = frozenset(
    {
        "__init__",
        "__new__",
        "__del__",
        "__init_subclass__",
        "__subclasshook__",
        "__class_getitem__",
        "__set_name__",
        "__getattr__",
        "__getattribute__",
        "__setattr__",
        "__delattr__",
        "__repr__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__copy__",
        "__deepcopy__",
    }
)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


def value_type(cls: C) -> C:
    """Mark *cls* as a value type.

    Instances are copied whenever they cross the proxy boundary: when the
    arguments are snapshotted, when the real method is called, when a
    value-typed receiver is restored, and when a result is returned.
    """
    setattr(cls, _VALUE_TYPE_ATTR, True)
    return cls


def is_value_type(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    if issubclass(tp, _SCALAR_VALUE_TYPES):
        return True
    return bool(getattr(tp, _VALUE_TYPE_ATTR, False))


def copy_value(value: Any) -> Any:
    """Return an independent copy of a marked value type, or *value* itself."""
    if getattr(type(value), _VALUE_TYPE_ATTR, False):
        return copy.copy(value)
    return value


def is_void(annotation: Any) -> bool:
    return annotation is None or annotation is type(None)


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


def contract_origin(contract: Any) -> type | None:
    """The class behind *contract*, unwrapping ``Repository[User]`` to ``Repository``."""
    origin = get_origin(contract) or contract
    return origin if isinstance(origin, type) else None


def is_protocol(tp: Any) -> bool:
    return isinstance(tp, type) and bool(getattr(tp, "_is_protocol", False))


def is_interface(contract: Any) -> bool:
    """Whether *contract* is interface-shaped: a Protocol or an abstract class."""
    origin = contract_origin(contract)
    if origin is None or origin in _SKIPPED_BASES or getattr(origin, "__final__", False):
        return False
    return is_protocol(origin) or inspect.isabstract(origin)


def type_bindings(contract: Any) -> dict[Any, Any]:
    """Map the class-level type parameters of a generic alias to its arguments."""
    origin = get_origin(contract)
    if origin is None:
        return {}
    return dict(zip(getattr(origin, "__parameters__", ()), get_args(contract)))


def class_parameters(origin: type) -> frozenset[Any]:
    """Every class-level type parameter declared anywhere in *origin*'s MRO."""
    found: set[Any] = set()
    for klass in inspect.getmro(origin):
        found.update(getattr(klass, "__parameters__", ()))
    return frozenset(found)


@dataclass(frozen=True)
class ContractMember:
    """A method or property a proxy type has to implement."""

    name: str
    member: Any

    @property
    def is_property(self) -> bool:
        return isinstance(self.member, property)


def contract_members(origin: type) -> list[ContractMember]:
    """Collect the public functions and properties declared along *origin*'s MRO.

    Special methods (``__call__``, ``__len__``, ``__iter__``, ...) count as
    public, except the class plumbing in ``_PLUMBING_DUNDERS``. Private
    names are included only when they are abstract, since the proxy type
    could not be instantiated otherwise. Non-abstract static and class
    methods are inherited untouched; abstract ones cannot be forwarded to an
    instance and make the contract invalid.
    """
    seen: set[str] = set()
    members: list[ContractMember] = []
    for klass in inspect.getmro(origin):
        if klass in _SKIPPED_BASES:
            continue
        for name, raw in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            abstract = bool(getattr(raw, "__isabstractmethod__", False))
            if _is_dunder(name):
                if name in _PLUMBING_DUNDERS:
                    continue
            elif name.startswith("_") and not abstract:
                continue
            if isinstance(raw, (staticmethod, classmethod)):
                if abstract:
                    raise InvalidContractException(origin, f"declares abstract {type(raw).__name__} {name!r}")
                continue
            if isinstance(raw, property) or inspect.isfunction(raw):
                members.append(ContractMember(name, raw))
    return members


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def implements(obj: Any, contract: Any) -> bool:
    """Whether the instance *obj* can stand in for *contract*.

    Protocols are checked structurally; abstract classes nominally.
    """
    origin = contract_origin(contract)
    if origin is None:
        return False
    if is_protocol(origin):
        return all(hasattr(obj, m.name) for m in contract_members(origin))
    return isinstance(obj, origin)


def class_implements(tp: type, contract: Any) -> bool:
    """Class-level counterpart of :func:`implements`."""
    origin = contract_origin(contract)
    if origin is None:
        return True
    if is_protocol(origin):
        return all(hasattr(tp, m.name) for m in contract_members(origin))
    return issubclass(tp, origin)


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------


def resolved_signature(function: Any) -> inspect.Signature:
    """``inspect.signature`` with string annotations evaluated where possible.

    Each annotation is resolved on its own: one that cannot be resolved
    (e.g. a name local to a function) stays a string and is treated as
    unknown by :func:`matches`, the others are still evaluated.
    """
    signature = inspect.signature(function)
    try:
        hints = typing.get_type_hints(function)
    except (NameError, TypeError):
        hints = _resolve_each(function)
    parameters = [p.replace(annotation=hints.get(p.name, p.annotation)) for p in signature.parameters.values()]
    return_annotation = hints.get("return", signature.return_annotation)
    if return_annotation == "None":
        return_annotation = None
    return signature.replace(parameters=parameters, return_annotation=return_annotation)


def _resolve_each(function: Any) -> dict[str, Any]:
    globalns = getattr(inspect.unwrap(function), "__globals__", {})
    hints: dict[str, Any] = {}
    for name, annotation in getattr(function, "__annotations__", {}).items():
        hints[name] = annotation
        if isinstance(annotation, str):
            try:
                hints[name] = eval(annotation, globalns)  # noqa: S307
            except (NameError, AttributeError, SyntaxError, TypeError):
                continue
    return hints


def method_typevars(function: Any, signature: inspect.Signature, exclude: frozenset[Any]) -> tuple[TypeVar, ...]:
    """The generic parameters of a method, in order of first appearance.

    PEP 695 type parameters (``def get[T: Entity](...)``) are used verbatim;
    otherwise every TypeVar in the annotations that is not a class-level
    parameter belongs to the method.
    """
    declared = getattr(function, "__type_params__", ())
    if declared:
        return tuple(tp for tp in declared if isinstance(tp, TypeVar))

    found: list[TypeVar] = []

    def walk(annotation: Any) -> None:
        if isinstance(annotation, TypeVar):
            if annotation not in exclude and annotation not in found:
                found.append(annotation)
        elif isinstance(annotation, (list, tuple)):
            for item in annotation:
                walk(item)
        else:
            for arg in get_args(annotation):
                walk(arg)

    for parameter in signature.parameters.values():
        walk(parameter.annotation)
    walk(signature.return_annotation)
    return tuple(found)


# ---------------------------------------------------------------------------
# Generic constraints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenericParameter:
    """The constraint shape of one method type parameter.

    ``interface_constraints`` and ``base_type_constraint`` must all hold;
    ``alternatives`` (TypeVar constraints or a Union bound) need one match.
    """

    typevar: TypeVar
    interface_constraints: tuple[Any, ...] = ()
    base_type_constraint: type | None = None
    alternatives: tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return self.typevar.__name__

    @classmethod
    def of(cls, typevar: TypeVar) -> GenericParameter:
        if typevar.__constraints__:
            return cls(typevar, alternatives=typevar.__constraints__)
        bound = typevar.__bound__
        if bound is None or isinstance(bound, (str, ForwardRef)):
            return cls(typevar)
        if get_origin(bound) in (typing.Union, types.UnionType):
            return cls(typevar, alternatives=get_args(bound))
        if is_interface(bound):
            return cls(typevar, interface_constraints=(bound,))
        if isinstance(bound, type):
            return cls(typevar, base_type_constraint=bound)
        return cls(typevar)

    def admits(self, type_argument: Any) -> bool:
        if not isinstance(type_argument, type):
            return True
        if self.base_type_constraint is not None and not issubclass(type_argument, self.base_type_constraint):
            return False
        if not all(class_implements(type_argument, iface) for iface in self.interface_constraints):
            return False
        if self.alternatives:
            return any(_class_matches(type_argument, alt) for alt in self.alternatives)
        return True


def _class_matches(tp: type, annotation: Any) -> bool:
    if is_void(annotation):
        return tp is type(None)
    if is_interface(annotation):
        return class_implements(tp, annotation)
    origin = contract_origin(annotation)
    return origin is None or issubclass(tp, origin)


# ---------------------------------------------------------------------------
# Result coercion
# ---------------------------------------------------------------------------


def matches(value: Any, annotation: Any, bindings: dict[Any, Any] | None = None) -> bool:
    """Whether *value* can be returned where *annotation* is declared.

    Value types must be actual instances (``None`` is rejected); reference
    types also accept ``None``. Annotations that cannot be checked at
    runtime (unresolved strings, ``Any``, bare ``Callable`` arguments) pass.
    """
    if annotation is Any or annotation is object or annotation is inspect.Parameter.empty:
        return True
    if is_void(annotation):
        return value is None
    if isinstance(annotation, (str, ForwardRef)):
        return True
    if isinstance(annotation, TypeVar):
        if bindings and annotation in bindings:
            return matches(value, bindings[annotation], bindings)
        if annotation.__constraints__:
            return any(matches(value, c, bindings) for c in annotation.__constraints__)
        if annotation.__bound__ is not None:
            return matches(value, annotation.__bound__, bindings)
        return True

    origin = get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        return any(matches(value, arg, bindings) for arg in get_args(annotation))
    if origin is typing.Literal:
        return value in get_args(annotation)
    if origin is typing.Annotated:
        return matches(value, get_args(annotation)[0], bindings)
    if origin is not None:
        annotation = origin
    if not isinstance(annotation, type):
        return True

    if is_value_type(annotation):
        return isinstance(value, (annotation, *_NUMERIC_PROMOTIONS.get(annotation, ())))
    if value is None:
        return True
    if is_protocol(annotation):
        return implements(value, annotation)
    return isinstance(value, annotation)
