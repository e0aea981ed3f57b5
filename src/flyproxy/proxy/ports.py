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
"""Interceptor and Handler — the capabilities a proxy dispatches to."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from flyproxy.proxy.types import InterceptorArgs, Invocation


@runtime_checkable
class Interceptor(Protocol):
    """Receives every call made on a proxy.

    Everything flows back to the caller through ``args.result``; calling
    ``args.proceed()`` is optional and may happen before, after, or instead
    of the interceptor's own work::

        class Timing:
            def handle(self, args: InterceptorArgs) -> None:
                started = time.perf_counter()
                args.proceed()
                print(args.method, time.perf_counter() - started)
    """

    def handle(self, args: InterceptorArgs) -> None: ...


@runtime_checkable
class Handler(Protocol):
    """Computes a call's result directly, with no access to a real target."""

    def handle(self, invocation: Invocation) -> Any: ...
