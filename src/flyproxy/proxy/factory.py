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
"""ProxyFactory — the entry point for creating interface proxies."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from flyproxy.config.properties.proxy import ProxyProperties
from flyproxy.core.config import Config
from flyproxy.kernel.exceptions import InvalidTargetException
from flyproxy.proxy.adapter import HandlerAdapter
from flyproxy.proxy.introspection import implements
from flyproxy.proxy.invoker import MethodInvokerCache
from flyproxy.proxy.ports import Handler, Interceptor
from flyproxy.proxy.synthesis import ProxyTypeCache
from flyproxy.proxy.types import Invocation

I = TypeVar("I")  # noqa: E741


class ProxyFactory:
    """Creates proxy instances bound to one interceptor and at most one target.

    The factory owns its caches; create one per composition root (or share
    one) instead of relying on process-wide state::

        factory = ProxyFactory()
        calc = factory.create_proxy_for_target(Calculator, LoggingInterceptor(), RealCalculator())
        calc.add(2, 3)

        stub = factory.create_proxy_without_target(Calculator, lambda invocation: 42)
        stub.add(2, 3)  # 42
    """

    def __init__(
        self,
        type_cache: ProxyTypeCache | None = None,
        invoker_cache: MethodInvokerCache | None = None,
        properties: ProxyProperties | None = None,
    ) -> None:
        self._properties = properties if properties is not None else ProxyProperties()
        if type_cache is None:
            type_cache = ProxyTypeCache(
                invoker_cache,
                type_name_suffix=self._properties.type_name_suffix,
                check_results=self._properties.check_results,
                check_constraints=self._properties.check_constraints,
            )
        self._types = type_cache

    @classmethod
    def from_config(cls, config: Config) -> ProxyFactory:
        """Build a factory with fresh caches from ``flyproxy.proxy.*`` settings."""
        return cls(properties=config.bind(ProxyProperties))

    @property
    def type_cache(self) -> ProxyTypeCache:
        return self._types

    @property
    def properties(self) -> ProxyProperties:
        return self._properties

    def create_proxy_for_target(self, contract: type[I], interceptor: Interceptor, target: I | None = None) -> I:
        """Create a proxy for *contract* that routes every call through *interceptor*.

        *target* is what ``InterceptorArgs.proceed()`` calls into; without
        one the interceptor must not proceed.

        Raises:
            InvalidContractException: *contract* is not interface-shaped.
            InvalidTargetException: *target* does not implement *contract*.
        """
        proxy_type = self._types.get_or_build(contract)
        if not isinstance(interceptor, Interceptor):
            raise TypeError(f"{type(interceptor).__name__} does not implement Interceptor.handle")
        if target is not None and self._properties.validate_targets and not implements(target, contract):
            raise InvalidTargetException(contract, target)
        return proxy_type(interceptor, target)  # type: ignore[no-any-return]

    def create_proxy_without_target(self, contract: type[I], handler: Handler | Callable[[Invocation], Any]) -> I:
        """Create a proxy whose every call is answered by *handler*."""
        return self.create_proxy_for_target(contract, HandlerAdapter(handler))
