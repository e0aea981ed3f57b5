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
"""Tests for the FlyProxy exception hierarchy."""

from flyproxy.kernel.exceptions import (
    ConstraintViolationException,
    FlyProxyException,
    InvalidContractException,
    InvalidInvocationException,
    InvalidTargetException,
    ProxyException,
    ResultTypeMismatchException,
)


class TestFlyProxyException:
    def test_basic_creation(self):
        exc = FlyProxyException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = FlyProxyException("bad", code="X_001", context={"key": "value"})
        assert exc.code == "X_001"
        assert exc.context["key"] == "value"

    def test_context_not_shared_between_instances(self):
        exc = FlyProxyException("a")
        exc.context["key"] = "value"
        assert FlyProxyException("b").context == {}


class TestExceptionHierarchy:
    def test_proxy_is_flyproxy(self):
        assert issubclass(ProxyException, FlyProxyException)

    def test_contract_violations_are_proxy_exceptions(self):
        for exc_type in (
            InvalidContractException,
            ResultTypeMismatchException,
            ConstraintViolationException,
            InvalidTargetException,
            InvalidInvocationException,
        ):
            assert issubclass(exc_type, ProxyException)


class TestProxyExceptions:
    def test_invalid_contract_names_the_type(self):
        class Concrete:
            pass

        exc = InvalidContractException(Concrete)
        assert exc.contract is Concrete
        assert "Concrete" in str(exc)
        assert "not an interface" in str(exc)
        assert exc.code == "PROXY_INVALID_CONTRACT"

    def test_invalid_contract_custom_reason(self):
        exc = InvalidContractException(int, "is sealed")
        assert str(exc) == "int is sealed"

    def test_result_type_mismatch_carries_details(self):
        exc = ResultTypeMismatchException("Calculator.add", int, "five")
        assert exc.method == "Calculator.add"
        assert exc.expected is int
        assert exc.actual == "five"
        assert "Calculator.add must return int" in str(exc)
        assert exc.context == {"method": "Calculator.add", "expected": "int", "actual": "str"}

    def test_constraint_violation(self):
        exc = ConstraintViolationException("Registry.register", "N", int)
        assert exc.parameter == "N"
        assert exc.type_argument is int
        assert exc.code == "PROXY_CONSTRAINT_VIOLATION"

    def test_invalid_target(self):
        exc = InvalidTargetException(list, "text")
        assert str(exc) == "str does not implement list"

    def test_invalid_invocation(self):
        exc = InvalidInvocationException("Calculator.add", "expected 2 argument slot(s), got 1")
        assert exc.reason == "expected 2 argument slot(s), got 1"
        assert str(exc).startswith("Invalid invocation of Calculator.add")
