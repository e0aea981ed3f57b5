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
"""ProxyTypeCache — synthesizes one forwarding class per interface contract."""

from __future__ import annotations

import functools
import inspect
import types
from collections.abc import Awaitable
from typing import Any, TypeVar, get_args, get_origin

import structlog

from flyproxy.kernel.exceptions import (
    ConstraintViolationException,
    InvalidContractException,
    ResultTypeMismatchException,
)
from flyproxy.proxy.introspection import (
    GenericParameter,
    class_parameters,
    contract_members,
    contract_origin,
    copy_value,
    is_interface,
    is_value_type,
    matches,
    method_typevars,
    type_bindings,
)
from flyproxy.proxy.invoker import MethodInvokerCache
from flyproxy.proxy.types import InterceptorArgs, Invocation, MethodIdentity, MethodKind

logger = structlog.get_logger("flyproxy.proxy.synthesis")

INTERCEPTOR_SLOT = "_proxy_interceptor"
TARGET_SLOT = "_proxy_target"
_BINDING_SLOTS = (INTERCEPTOR_SLOT, TARGET_SLOT)

_VAR_POSITIONAL = inspect.Parameter.VAR_POSITIONAL
_VAR_KEYWORD = inspect.Parameter.VAR_KEYWORD


# ---------------------------------------------------------------------------
# Instance plumbing shared by every proxy type
# ---------------------------------------------------------------------------


def _proxy_init(self: Any, interceptor: Any, target: Any = None) -> None:
    object.__setattr__(self, INTERCEPTOR_SLOT, interceptor)
    object.__setattr__(self, TARGET_SLOT, target)


def _proxy_setattr(self: Any, name: str, value: Any) -> None:
    if name in _BINDING_SLOTS:
        raise AttributeError(f"{type(self).__name__}.{name} is bound once at construction")
    object.__setattr__(self, name, value)


def _proxy_delattr(self: Any, name: str) -> None:
    if name in _BINDING_SLOTS:
        raise AttributeError(f"{type(self).__name__}.{name} is bound once at construction")
    object.__delattr__(self, name)


def _proxy_repr(self: Any) -> str:
    return f"<{type(self).__flyproxy_contract_name__} proxy target={getattr(self, TARGET_SLOT)!r}>"


# ---------------------------------------------------------------------------
# Per-call helpers
# ---------------------------------------------------------------------------


def _box(kind: Any, value: Any) -> Any:
    if kind is _VAR_POSITIONAL:
        return tuple(copy_value(v) for v in value)
    if kind is _VAR_KEYWORD:
        return {k: copy_value(v) for k, v in value.items()}
    return copy_value(value)


def _infer_type_arguments(
    generics: tuple[GenericParameter, ...],
    parameters: tuple[inspect.Parameter, ...],
    arguments: tuple[Any, ...],
) -> tuple[Any, ...]:
    """Infer a generic method's instantiation from the values it was called with.

    ``x: T`` contributes ``type(x)``; ``cls: type[T]`` contributes ``cls``.
    The first non-``None`` occurrence wins; parameters that cannot be
    inferred stay open (the TypeVar itself).
    """
    inferred: dict[Any, Any] = {}
    for parameter, value in zip(parameters, arguments):
        if parameter.kind is _VAR_POSITIONAL:
            value = next(iter(value), None)
        elif parameter.kind is _VAR_KEYWORD:
            value = next(iter(value.values()), None)

        annotation = parameter.annotation
        if isinstance(annotation, TypeVar):
            candidate = type(value) if value is not None else None
        elif get_origin(annotation) is type and isinstance(next(iter(get_args(annotation)), None), TypeVar):
            annotation = get_args(annotation)[0]
            candidate = value if isinstance(value, type) else None
        else:
            continue
        if candidate is not None:
            inferred.setdefault(annotation, candidate)
    return tuple(inferred.get(g.typevar, g.typevar) for g in generics)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ProxyTypeCache:
    """Get-or-create cache of synthesized proxy types, one per contract.

    A contract is a ``Protocol`` or an abstract class, optionally
    parameterised (``Repository[User]``). The synthesized type subclasses
    the contract, so its instances pass ``isinstance`` checks, and replaces
    every public method and property with a body that:

    1. binds the call's arguments into one slot per declared parameter,
       copying value-typed arguments;
    2. infers and checks the type arguments of generic methods;
    3. builds an :class:`Invocation` against the declared contract and an
       :class:`InterceptorArgs` bound to the target and the cached invoker;
    4. hands it to the proxy's interceptor;
    5. checks ``result`` against the declared return type and returns it
       (void methods return ``None``).

    Building is free of side effects, so racing builders are harmless:
    ``dict.setdefault`` publishes the first finished type and every caller
    observes that one from then on.
    """

    def __init__(
        self,
        invokers: MethodInvokerCache | None = None,
        *,
        type_name_suffix: str = "_proxy",
        check_results: bool = True,
        check_constraints: bool = True,
    ) -> None:
        self._invokers = invokers if invokers is not None else MethodInvokerCache()
        self._suffix = type_name_suffix
        self._check_results = check_results
        self._check_constraints = check_constraints
        self._types: dict[Any, type] = {}

    @property
    def invokers(self) -> MethodInvokerCache:
        return self._invokers

    def get_or_build(self, contract: Any) -> type:
        """Return the proxy type for *contract*, building it on first use.

        Raises:
            InvalidContractException: *contract* is not interface-shaped.
        """
        try:
            proxy_type = self._types.get(contract)
        except TypeError:
            raise InvalidContractException(contract, "is not hashable") from None
        if proxy_type is not None:
            return proxy_type

        built = self.build(contract)
        proxy_type = self._types.setdefault(contract, built)
        if proxy_type is built:
            logger.debug("proxy_type_built", contract=built.__flyproxy_contract_name__, type=built.__qualname__)
        return proxy_type

    def clear(self) -> None:
        self._types.clear()

    def __contains__(self, contract: object) -> bool:
        return contract in self._types

    def __len__(self) -> int:
        return len(self._types)

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    def build(self, contract: Any) -> type:
        """Synthesize a new proxy type for *contract* without caching it."""
        origin = contract_origin(contract)
        if origin is None or not is_interface(contract):
            raise InvalidContractException(contract)

        bindings = type_bindings(contract)
        exclude = class_parameters(origin)
        qualname = origin.__qualname__ + self._suffix

        namespace: dict[str, Any] = {
            "__module__": origin.__module__,
            "__qualname__": qualname,
            "__doc__": f"Proxy implementation of {origin.__qualname__}.",
            "__repr__": _proxy_repr,
        }
        for member in contract_members(origin):
            if member.is_property:
                prop = member.member
                namespace[member.name] = property(
                    self._method(contract, member.name, prop.fget, MethodKind.GETTER, bindings, exclude, qualname)
                    if prop.fget is not None
                    else None,
                    self._method(contract, member.name, prop.fset, MethodKind.SETTER, bindings, exclude, qualname)
                    if prop.fset is not None
                    else None,
                    None,
                    prop.__doc__,
                )
            else:
                namespace[member.name] = self._method(
                    contract, member.name, member.member, MethodKind.METHOD, bindings, exclude, qualname
                )

        namespace.update(
            __slots__=_BINDING_SLOTS,
            __init__=_proxy_init,
            __setattr__=_proxy_setattr,
            __delattr__=_proxy_delattr,
            __flyproxy_contract__=contract,
            __flyproxy_contract_name__=origin.__qualname__ if contract is origin else repr(contract),
        )
        return types.new_class(origin.__name__ + self._suffix, (origin,), exec_body=lambda ns: ns.update(namespace))

    def _method(
        self,
        contract: Any,
        name: str,
        function: Any,
        kind: MethodKind,
        bindings: dict[Any, Any],
        exclude: frozenset[Any],
        owner_qualname: str,
    ) -> Any:
        identity = MethodIdentity(contract, name, function, kind)
        signature = identity.signature
        parameters = identity.parameters
        generics = tuple(GenericParameter.of(tv) for tv in method_typevars(function, signature, exclude))
        boxing = tuple(is_value_type(p.annotation) for p in parameters)
        return_annotation = identity.return_annotation
        is_async = inspect.iscoroutinefunction(function)
        void = identity.is_void and not is_async
        copy_result = is_value_type(return_annotation)
        check_results = self._check_results
        check_constraints = self._check_constraints
        invokers = self._invokers
        method_name = str(identity)

        def proxy_method(proxy: Any, *args: Any, **kwargs: Any) -> Any:
            bound = signature.bind(proxy, *args, **kwargs)
            bound.apply_defaults()
            values = tuple(bound.arguments.values())[1:]
            arguments = tuple(
                _box(p.kind, v) if by_value else v for p, v, by_value in zip(parameters, values, boxing)
            )

            method = identity
            result_bindings = bindings
            if generics:
                type_arguments = _infer_type_arguments(generics, parameters, arguments)
                if check_constraints:
                    for generic, type_argument in zip(generics, type_arguments):
                        if not generic.admits(type_argument):
                            raise ConstraintViolationException(method_name, generic.name, type_argument)
                method = identity.with_type_arguments(type_arguments)
                result_bindings = {
                    **bindings,
                    **{g.typevar: t for g, t in zip(generics, type_arguments) if isinstance(t, type)},
                }

            call = InterceptorArgs(
                proxy._proxy_target,
                invokers.get_or_build(method),
                Invocation(method, arguments),
            )
            proxy._proxy_interceptor.handle(call)

            if void:
                return None
            result = call.result
            if is_async:
                if check_results and not inspect.isawaitable(result):
                    raise ResultTypeMismatchException(method_name, Awaitable, result)
                return result
            if check_results and not matches(result, return_annotation, result_bindings):
                raise ResultTypeMismatchException(
                    method_name, result_bindings.get(return_annotation, return_annotation), result
                )
            return copy_value(result) if copy_result else result

        # updated=(): __isabstractmethod__ must not carry over from the contract.
        functools.update_wrapper(proxy_method, function, updated=())
        proxy_method.__name__ = name
        proxy_method.__qualname__ = f"{owner_qualname}.{name}"
        proxy_method.__signature__ = inspect.signature(function)  # type: ignore[attr-defined]
        if getattr(function, "__type_params__", ()):
            proxy_method.__type_params__ = function.__type_params__
        return proxy_method
