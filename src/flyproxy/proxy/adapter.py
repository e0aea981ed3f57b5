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
"""HandlerAdapter — lifts a one-shot Handler into an Interceptor."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flyproxy.proxy.ports import Handler
from flyproxy.proxy.types import InterceptorArgs, Invocation


class HandlerAdapter:
    """Interceptor that answers every call with its handler's return value.

    The adapter never calls ``proceed()``, which is what makes it safe to
    install on proxies that have no target. *handler* is either a
    :class:`Handler` or a plain callable taking the :class:`Invocation`.
    """

    __slots__ = ("_handle",)

    def __init__(self, handler: Handler | Callable[[Invocation], Any]) -> None:
        if isinstance(handler, Handler):
            self._handle = handler.handle
        elif callable(handler):
            self._handle = handler
        else:
            raise TypeError(f"{type(handler).__name__} is neither a Handler nor callable")

    def handle(self, args: InterceptorArgs) -> None:
        args.result = self._handle(args.invocation)
