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
"""FlyProxy — dynamic interface proxies with a single-interceptor pipeline."""

from flyproxy.core.bootstrap import create_proxy_factory
from flyproxy.core.config import Config
from flyproxy.kernel.exceptions import (
    ConstraintViolationException,
    FlyProxyException,
    InvalidContractException,
    InvalidInvocationException,
    InvalidTargetException,
    ResultTypeMismatchException,
)
from flyproxy.proxy import (
    Handler,
    HandlerAdapter,
    Interceptor,
    InterceptorArgs,
    Invocation,
    MethodIdentity,
    MethodInvokerCache,
    ProxyFactory,
    ProxyTypeCache,
    value_type,
)

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConstraintViolationException",
    "FlyProxyException",
    "Handler",
    "HandlerAdapter",
    "Interceptor",
    "InterceptorArgs",
    "InvalidContractException",
    "InvalidInvocationException",
    "InvalidTargetException",
    "Invocation",
    "MethodIdentity",
    "MethodInvokerCache",
    "ProxyFactory",
    "ProxyTypeCache",
    "ResultTypeMismatchException",
    "create_proxy_factory",
    "value_type",
]
