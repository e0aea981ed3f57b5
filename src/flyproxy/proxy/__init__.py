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
"""Dynamic interface proxies: synthesized types, invokers and interceptors."""

from flyproxy.proxy.adapter import HandlerAdapter
from flyproxy.proxy.factory import ProxyFactory
from flyproxy.proxy.introspection import GenericParameter, is_interface, is_value_type, value_type
from flyproxy.proxy.invoker import MethodInvokerCache, build_invoker
from flyproxy.proxy.ports import Handler, Interceptor
from flyproxy.proxy.synthesis import ProxyTypeCache
from flyproxy.proxy.types import InterceptorArgs, Invocation, MethodIdentity, MethodInvoker, MethodKind

__all__ = [
    "GenericParameter",
    "Handler",
    "HandlerAdapter",
    "Interceptor",
    "InterceptorArgs",
    "Invocation",
    "MethodIdentity",
    "MethodInvoker",
    "MethodInvokerCache",
    "MethodKind",
    "ProxyFactory",
    "ProxyTypeCache",
    "build_invoker",
    "is_interface",
    "is_value_type",
    "value_type",
]
