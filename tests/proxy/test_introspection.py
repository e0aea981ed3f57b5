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
"""Tests for contract, value-type and annotation introspection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, Optional, Protocol, TypeVar, Union

import pytest

from flyproxy.kernel.exceptions import InvalidContractException
from flyproxy.proxy.introspection import (
    GenericParameter,
    contract_members,
    contract_origin,
    copy_value,
    implements,
    is_interface,
    is_value_type,
    matches,
    method_typevars,
    resolved_signature,
    type_bindings,
    value_type,
)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helper types
# ---------------------------------------------------------------------------


class Greeter(Protocol):
    def greet(self, name: str) -> str: ...

    @property
    def language(self) -> str: ...

    def _helper(self) -> None: ...


class Tally(Protocol):
    def __len__(self) -> int: ...

    def __contains__(self, item: object) -> bool: ...


class Store(ABC, Generic[T]):
    @abstractmethod
    def load(self, key: str) -> T: ...

    @abstractmethod
    def _validate(self, value: T) -> bool: ...

    def describe(self) -> str:
        return "store"

    @staticmethod
    def version() -> int:
        return 1


class BrokenStore(ABC):
    @staticmethod
    @abstractmethod
    def create() -> BrokenStore: ...


class NotAbstract(ABC):
    def run(self) -> None:
        pass


class Concrete:
    def greet(self, name: str) -> str:
        return name


class EnglishGreeter:
    language = "en"

    def greet(self, name: str) -> str:
        return f"hello {name}"


class Colour(Enum):
    RED = 1


@value_type
@dataclass
class Point:
    x: int
    y: int


@dataclass
class Box:
    items: list


class Entity:
    pass


class Customer(Entity):
    def greet(self, name: str) -> str:
        return name

    language = "en"


E = TypeVar("E", bound=Entity)
G = TypeVar("G", bound=Greeter)
S = TypeVar("S", str, bytes)
U = TypeVar("U", bound=Union[int, str])


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


class TestIsInterface:
    def test_protocol_is_interface(self) -> None:
        assert is_interface(Greeter)

    def test_abstract_class_is_interface(self) -> None:
        assert is_interface(Store)

    def test_parameterised_alias_is_interface(self) -> None:
        assert is_interface(Store[int])
        assert contract_origin(Store[int]) is Store

    def test_concrete_types_are_not_interfaces(self) -> None:
        assert not is_interface(Concrete)
        assert not is_interface(int)
        assert not is_interface(list[int])
        assert not is_interface(NotAbstract)

    def test_typing_bases_are_not_interfaces(self) -> None:
        assert not is_interface(Protocol)
        assert not is_interface(ABC)

    def test_non_types_are_not_interfaces(self) -> None:
        assert not is_interface("Greeter")
        assert not is_interface(None)


class TestContractMembers:
    def test_protocol_members(self) -> None:
        names = {m.name for m in contract_members(Greeter)}
        assert names == {"greet", "language"}

    def test_properties_are_flagged(self) -> None:
        members = {m.name: m for m in contract_members(Greeter)}
        assert members["language"].is_property
        assert not members["greet"].is_property

    def test_special_methods_are_members(self) -> None:
        names = {m.name for m in contract_members(Tally)}
        assert names == {"__len__", "__contains__"}

    def test_abstract_private_members_are_included(self) -> None:
        names = {m.name for m in contract_members(Store)}
        assert names == {"load", "_validate", "describe"}

    def test_abstract_static_methods_are_rejected(self) -> None:
        with pytest.raises(InvalidContractException, match="abstract staticmethod 'create'"):
            contract_members(BrokenStore)

    def test_type_bindings(self) -> None:
        assert type_bindings(Store[int]) == {T: int}
        assert type_bindings(Store) == {}


class TestImplements:
    def test_protocols_are_structural(self) -> None:
        assert implements(EnglishGreeter(), Greeter)
        assert not implements(Concrete(), Greeter)

    def test_special_methods_are_required(self) -> None:
        assert implements([1, 2], Tally)
        assert not implements(object(), Tally)

    def test_abstract_classes_are_nominal(self) -> None:
        class Memory(Store):
            def load(self, key: str) -> Any:
                return key

            def _validate(self, value: Any) -> bool:
                return True

        assert implements(Memory(), Store)
        assert implements(Memory(), Store[int])
        assert not implements(Concrete(), Store)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


class TestValueTypes:
    def test_scalars_are_value_types(self) -> None:
        for tp in (int, float, bool, str, bytes, Colour):
            assert is_value_type(tp)

    def test_marked_classes_are_value_types(self) -> None:
        assert is_value_type(Point)
        assert not is_value_type(Box)

    def test_non_types_are_not_value_types(self) -> None:
        assert not is_value_type(Optional[int])
        assert not is_value_type("int")

    def test_copy_value_copies_marked_instances(self) -> None:
        point = Point(1, 2)
        copied = copy_value(point)
        assert copied == point
        assert copied is not point

    def test_copy_value_shares_references(self) -> None:
        box = Box([1])
        assert copy_value(box) is box
        assert copy_value(5) == 5


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------


class TestSignatures:
    def test_resolved_signature_evaluates_string_annotations(self) -> None:
        signature = resolved_signature(Greeter.greet)
        assert signature.parameters["name"].annotation is str
        assert signature.return_annotation is str

    def test_unresolvable_annotation_leaves_others_resolved(self) -> None:
        class Local:
            pass

        def count(self, item: Local, limit: int) -> int: ...

        signature = resolved_signature(count)
        assert signature.parameters["item"].annotation == "Local"
        assert signature.parameters["limit"].annotation is int
        assert signature.return_annotation is int

    def test_method_typevars_skip_class_parameters(self) -> None:
        def pick(self, first: G, items: list[E], fallback: T) -> E: ...

        signature = resolved_signature(pick)
        assert method_typevars(pick, signature, frozenset({T})) == (G, E)

    def test_method_typevars_walk_callable_arguments(self) -> None:
        def apply(self, fn: Callable[[E], None]) -> None: ...

        signature = resolved_signature(apply)
        assert method_typevars(apply, signature, frozenset()) == (E,)


# ---------------------------------------------------------------------------
# Generic constraints
# ---------------------------------------------------------------------------


class TestGenericParameter:
    def test_interface_bound(self) -> None:
        parameter = GenericParameter.of(G)
        assert parameter.interface_constraints == (Greeter,)
        assert parameter.base_type_constraint is None
        assert parameter.name == "G"
        assert parameter.admits(EnglishGreeter)
        assert not parameter.admits(int)

    def test_base_type_bound(self) -> None:
        parameter = GenericParameter.of(E)
        assert parameter.base_type_constraint is Entity
        assert parameter.interface_constraints == ()
        assert parameter.admits(Customer)
        assert not parameter.admits(str)

    def test_value_constraints(self) -> None:
        parameter = GenericParameter.of(S)
        assert parameter.alternatives == (str, bytes)
        assert parameter.admits(str)
        assert not parameter.admits(int)

    def test_union_bound(self) -> None:
        parameter = GenericParameter.of(U)
        assert parameter.admits(int)
        assert parameter.admits(bool)
        assert not parameter.admits(float)

    def test_unbounded_admits_anything(self) -> None:
        parameter = GenericParameter.of(T)
        assert parameter.admits(object)
        assert parameter.admits(T)

    def test_open_type_argument_is_admitted(self) -> None:
        assert GenericParameter.of(E).admits(E)


# ---------------------------------------------------------------------------
# Result matching
# ---------------------------------------------------------------------------


class TestMatches:
    def test_value_types_reject_none(self) -> None:
        assert matches(3, int)
        assert not matches(None, int)
        assert not matches("3", int)

    def test_numeric_promotion(self) -> None:
        assert matches(3, float)
        assert matches(3.0, complex)
        assert not matches(3.0, int)

    def test_reference_types_accept_none(self) -> None:
        assert matches(None, Box)
        assert matches(Box([]), Box)
        assert not matches(Point(1, 2), Box)

    def test_void(self) -> None:
        assert matches(None, None)
        assert not matches(1, type(None))

    def test_optional_and_union(self) -> None:
        assert matches(None, Optional[int])
        assert matches("x", Union[int, str])
        assert matches(1, int | None)
        assert not matches(1.5, Union[int, str])

    def test_generic_aliases_check_origin(self) -> None:
        assert matches([1, 2], list[int])
        assert not matches((1, 2), list[int])

    def test_literal(self) -> None:
        assert matches("a", Literal["a", "b"])
        assert not matches("c", Literal["a", "b"])

    def test_protocols_are_structural(self) -> None:
        assert matches(EnglishGreeter(), Greeter)
        assert not matches(Concrete(), Greeter)

    def test_typevars_use_bindings_then_bounds(self) -> None:
        assert matches(1, T, {T: int})
        assert not matches("1", T, {T: int})
        assert matches(Customer(), E)
        assert not matches(Box([]), E)
        assert matches(b"x", S)
        assert matches(object(), T)

    def test_unknown_annotations_pass(self) -> None:
        assert matches(1, Any)
        assert matches(1, "NotResolvable")
