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
"""Proxy subsystem configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field

from flyproxy.core.config import config_properties


@config_properties(prefix="flyproxy.proxy")
class ProxyProperties(BaseModel):
    """Configuration for proxy synthesis (flyproxy.proxy.*).

    Attributes:
        type_name_suffix: Appended to the contract name to name proxy types.
        check_results: Raise ResultTypeMismatchException for results that do
            not fit the declared return type. When off, results are returned
            unchecked.
        check_constraints: Validate inferred type arguments of generic methods
            against their TypeVar bounds before dispatching.
        validate_targets: Reject targets that do not implement the contract.
    """

    type_name_suffix: str = Field(default="_proxy", min_length=1)
    check_results: bool = True
    check_constraints: bool = True
    validate_targets: bool = True
