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
"""FlyProxy exception hierarchy.

Failures raised by the real method during ``proceed()`` are never wrapped:
they reach the interceptor (and then the caller) unchanged. Everything in
this module describes a violation of the proxy contract itself.
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Base Exception
# =============================================================================


class FlyProxyException(Exception):
    """Base exception for all FlyProxy errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "PROXY_INVALID_CONTRACT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)


# =============================================================================
# Proxy Exceptions
# =============================================================================


class ProxyException(FlyProxyException):
    """Violations of the proxy contract: bad contracts, bad results, bad targets."""


class InvalidContractException(ProxyException):
    """The requested contract is not interface-shaped.

    Raised while the proxy type is being built, before any instance exists.
    """

    def __init__(self, contract: Any, reason: str = "is not an interface type") -> None:
        self.contract = contract
        super().__init__(
            f"{_type_name(contract)} {reason}",
            code="PROXY_INVALID_CONTRACT",
            context={"contract": _type_name(contract)},
        )


class ResultTypeMismatchException(ProxyException):
    """An interceptor left a result the method's return type cannot hold."""

    def __init__(self, method: str, expected: Any, actual: Any) -> None:
        self.method = method
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{method} must return {_type_name(expected)}, interceptor produced {type(actual).__name__}",
            code="PROXY_RESULT_TYPE_MISMATCH",
            context={"method": method, "expected": _type_name(expected), "actual": type(actual).__name__},
        )


class ConstraintViolationException(ProxyException):
    """A generic method was instantiated with a type argument outside its bound."""

    def __init__(self, method: str, parameter: str, type_argument: Any) -> None:
        self.method = method
        self.parameter = parameter
        self.type_argument = type_argument
        super().__init__(
            f"{_type_name(type_argument)} does not satisfy the constraints of {parameter} on {method}",
            code="PROXY_CONSTRAINT_VIOLATION",
            context={"method": method, "parameter": parameter, "type_argument": _type_name(type_argument)},
        )


class InvalidTargetException(ProxyException):
    """A target or receiver does not implement the type it is dispatched through."""

    def __init__(self, expected: Any, target: Any) -> None:
        self.expected = expected
        self.target = target
        super().__init__(
            f"{type(target).__name__} does not implement {_type_name(expected)}",
            code="PROXY_INVALID_TARGET",
            context={"expected": _type_name(expected), "target": type(target).__name__},
        )


class InvalidInvocationException(ProxyException):
    """An invocation record's arguments do not line up with the method's parameters."""

    def __init__(self, method: str, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(
            f"Invalid invocation of {method}: {reason}",
            code="PROXY_INVALID_INVOCATION",
            context={"method": method},
        )
