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
"""MethodInvokerCache — builds and caches the callables that perform real calls."""

from __future__ import annotations

import inspect
from typing import Any

import structlog

from flyproxy.kernel.exceptions import InvalidInvocationException, InvalidTargetException
from flyproxy.proxy.introspection import copy_value, is_protocol, is_value_type
from flyproxy.proxy.types import MethodIdentity, MethodInvoker, MethodKind

logger = structlog.get_logger("flyproxy.proxy.invoker")

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def build_invoker(identity: MethodIdentity) -> MethodInvoker:
    """Build a callable performing the real call of *identity*.

    The callable takes ``(instance, arguments)`` where *arguments* has one
    slot per declared parameter. Value-typed receivers, arguments and
    results are copied on the way through; instance members are looked up
    on the instance (virtual dispatch), static members are called directly.
    Void members return ``None``.
    """
    name = identity.name
    kind = identity.kind
    plan = tuple((p.kind, p.name, is_value_type(p.annotation)) for p in identity.parameters)
    copy_result = is_value_type(identity.return_annotation)
    void = identity.is_void

    receiver_type = identity.declaring_type
    copy_receiver = is_value_type(receiver_type)
    check_receiver = receiver_type is not None and not copy_receiver and not is_protocol(receiver_type)

    def restore(instance: Any) -> Any:
        if instance is None:
            return instance
        if copy_receiver:
            return copy_value(instance)
        if check_receiver and not isinstance(instance, receiver_type):
            raise InvalidTargetException(receiver_type, instance)
        return instance

    def spread(arguments: tuple[Any, ...]) -> tuple[list[Any], dict[str, Any]]:
        if len(arguments) != len(plan):
            raise InvalidInvocationException(
                str(identity), f"expected {len(plan)} argument slot(s), got {len(arguments)}"
            )
        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for (param_kind, param_name, by_value), value in zip(plan, arguments):
            if param_kind in _POSITIONAL:
                positional.append(copy_value(value) if by_value else value)
            elif param_kind is inspect.Parameter.VAR_POSITIONAL:
                positional.extend(copy_value(v) if by_value else v for v in value)
            elif param_kind is inspect.Parameter.KEYWORD_ONLY:
                keywords[param_name] = copy_value(value) if by_value else value
            else:
                keywords.update((k, copy_value(v) if by_value else v) for k, v in value.items())
        return positional, keywords

    if kind is MethodKind.GETTER:

        def dispatch(instance: Any, arguments: tuple[Any, ...]) -> Any:
            spread(arguments)
            return getattr(restore(instance), name)

    elif kind is MethodKind.SETTER:

        def dispatch(instance: Any, arguments: tuple[Any, ...]) -> Any:
            (value,), _ = spread(arguments)
            setattr(restore(instance), name, value)

    elif kind is MethodKind.STATIC:
        function = identity.function

        def dispatch(instance: Any, arguments: tuple[Any, ...]) -> Any:
            positional, keywords = spread(arguments)
            return function(*positional, **keywords)

    else:

        def dispatch(instance: Any, arguments: tuple[Any, ...]) -> Any:
            positional, keywords = spread(arguments)
            return getattr(restore(instance), name)(*positional, **keywords)

    def invoke(instance: Any, arguments: tuple[Any, ...]) -> Any:
        result = dispatch(instance, arguments)
        if void:
            return None
        return copy_value(result) if copy_result else result

    invoke.__name__ = f"call_of_{name}"
    invoke.__qualname__ = f"call_of_{identity.qualified_name}"
    return invoke


class MethodInvokerCache:
    """Get-or-create cache of method invokers keyed by :class:`MethodIdentity`.

    Lookups never block. Two threads missing the same identity may both
    build an invoker; ``dict.setdefault`` publishes exactly one and both
    callers get that one back.

    Usage::

        invokers = MethodInvokerCache()
        call = invokers.get_or_build(MethodIdentity.of(Calculator, "add"))
        call(Calculator(), (2, 3))  # 5
    """

    def __init__(self) -> None:
        self._invokers: dict[MethodIdentity, MethodInvoker] = {}

    def get_or_build(self, identity: MethodIdentity) -> MethodInvoker:
        invoker = self._invokers.get(identity)
        if invoker is not None:
            return invoker
        built = build_invoker(identity)
        invoker = self._invokers.setdefault(identity, built)
        if invoker is built:
            logger.debug("method_invoker_built", method=str(identity), kind=identity.kind.value)
        return invoker

    def clear(self) -> None:
        self._invokers.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._invokers

    def __len__(self) -> int:
        return len(self._invokers)
