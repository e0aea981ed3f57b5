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
"""Tests for Config — hierarchical configuration and property binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel

from flyproxy.config.properties.proxy import ProxyProperties
from flyproxy.core.config import Config, config_properties


class TestConfig:
    def test_get_simple_value(self):
        config = Config({"app": {"name": "billing", "port": 8080}})
        assert config.get("app.port") == 8080

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_nested_value(self):
        config = Config({"flyproxy": {"proxy": {"check_results": False}}})
        assert config.get("flyproxy.proxy.check_results") is False

    def test_get_through_non_mapping(self):
        config = Config({"app": "flat"})
        assert config.get("app.name", "fallback") == "fallback"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "flyproxy.yaml"
        config_file.write_text("flyproxy:\n  proxy:\n    type_name_suffix: Impl\n")
        config = Config.from_file(config_file)
        assert config.get("flyproxy.proxy.type_name_suffix") == "Impl"
        assert config.get("flyproxy.proxy.check_results") is True

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "flyproxy.toml"
        config_file.write_text('[flyproxy.proxy]\ncheck_constraints = false\n')
        config = Config.from_file(config_file)
        assert config.get("flyproxy.proxy.check_constraints") is False

    def test_empty_file_keeps_defaults(self, tmp_path: Path):
        config_file = tmp_path / "flyproxy.yaml"
        config_file.write_text("")
        config = Config.from_file(config_file)
        assert config.get("flyproxy.logging.format") == "console"

    def test_missing_file_loads_defaults_only(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.loaded_sources == ["flyproxy-defaults.yaml (framework defaults)"]
        assert config.get("flyproxy.proxy.type_name_suffix") == "_proxy"

    def test_skip_framework_defaults(self, tmp_path: Path):
        config_file = tmp_path / "flyproxy.yaml"
        config_file.write_text("app:\n  name: bare\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("flyproxy.proxy.type_name_suffix") is None
        assert config.loaded_sources == [str(config_file)]

    def test_defaults(self):
        config = Config.defaults()
        assert config.get("flyproxy.logging.level.root") == "INFO"
        assert config.get("flyproxy.proxy.validate_targets") is True

    def test_to_dict_is_a_copy(self):
        config = Config({"app": {"name": "x"}})
        config.to_dict()["app"] = "changed"
        assert config.get("app.name") == "x"


class TestEnvironmentOverrides:
    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("FLYPROXY_APP_NAME", "env-service")
        config = Config({"app": {"name": "file-service"}})
        assert config.get("app.name") == "env-service"

    def test_framework_prefix_is_not_repeated(self, monkeypatch):
        monkeypatch.setenv("FLYPROXY_PROXY_TYPE_NAME_SUFFIX", "FromEnv")
        config = Config.defaults()
        assert config.get("flyproxy.proxy.type_name_suffix") == "FromEnv"

    def test_section_applies_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FLYPROXY_PROXY_CHECK_RESULTS", "false")
        section = Config.defaults().get_section("flyproxy.proxy")
        assert section["check_results"] == "false"
        assert section["check_constraints"] is True

    def test_get_section_of_leaf_is_empty(self):
        config = Config({"app": {"name": "x"}})
        assert config.get_section("app.name") == {}


class TestPlaceholderResolution:
    def test_resolve_env_var(self, monkeypatch):
        monkeypatch.setenv("SUFFIX_FROM_ENV", "Stub")
        config = Config({"flyproxy": {"proxy": {"type_name_suffix": "${SUFFIX_FROM_ENV}"}}})
        assert config.get("flyproxy.proxy.type_name_suffix") == "Stub"

    def test_resolve_config_reference(self):
        config = Config({"app": {"name": "Billing"}, "greeting": "Hello from ${app.name}"})
        assert config.get("greeting") == "Hello from Billing"

    def test_resolve_with_default(self):
        config = Config({"key": "${MISSING_VAR:fallback_value}"})
        assert config.get("key") == "fallback_value"

    def test_unresolvable_placeholder(self):
        config = Config({"key": "${MISSING_VAR}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("key")

    def test_max_recursion_guard(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="Max recursion"):
            config.get("a")


class TestConfigProperties:
    def test_bind_to_dataclass(self):
        @config_properties(prefix="cache")
        @dataclass
        class CacheSettings:
            name: str = "types"
            capacity: int = 5
            enabled: bool = False

        config = Config({"cache": {"name": "invokers", "capacity": "20", "enabled": "yes"}})
        settings = config.bind(CacheSettings)
        assert settings.name == "invokers"
        assert settings.capacity == 20
        assert settings.enabled is True

    def test_bind_uses_defaults(self):
        @config_properties(prefix="cache")
        @dataclass
        class CacheSettings:
            capacity: int = 5

        assert Config({}).bind(CacheSettings).capacity == 5

    def test_bind_to_pydantic_model(self):
        config = Config({"flyproxy": {"proxy": {"check_results": "false", "type_name_suffix": "Impl"}}})
        properties = config.bind(ProxyProperties)
        assert properties.check_results is False
        assert properties.type_name_suffix == "Impl"
        assert properties.validate_targets is True

    def test_bind_pydantic_validation_error(self):
        config = Config({"flyproxy": {"proxy": {"check_results": "sometimes"}}})
        with pytest.raises(ValueError, match="Configuration validation failed for 'ProxyProperties'"):
            config.bind(ProxyProperties)

    def test_bind_requires_decorator(self):
        class Plain(BaseModel):
            value: int = 1

        with pytest.raises(ValueError, match="not decorated with @config_properties"):
            Config({}).bind(Plain)


class TestProfileConfigMerging:
    def test_merge_profile_config(self, tmp_path):
        base = tmp_path / "flyproxy.yaml"
        base.write_text("flyproxy:\n  proxy:\n    type_name_suffix: Impl\n    check_results: true\n")

        profile = tmp_path / "flyproxy-dev.yaml"
        profile.write_text("flyproxy:\n  proxy:\n    check_results: false\n")

        config = Config.from_file(base, active_profiles=["dev"])
        assert config.get("flyproxy.proxy.type_name_suffix") == "Impl"
        assert config.get("flyproxy.proxy.check_results") is False
        assert config.loaded_sources[-1] == f"{profile} (profile: dev)"

    def test_later_profile_wins(self, tmp_path):
        base = tmp_path / "flyproxy.yaml"
        base.write_text("db:\n  url: base\n")
        (tmp_path / "flyproxy-dev.yaml").write_text("db:\n  url: dev-url\n")
        (tmp_path / "flyproxy-local.yaml").write_text("db:\n  url: local-url\n")

        config = Config.from_file(base, active_profiles=["dev", "local"])
        assert config.get("db.url") == "local-url"

    def test_missing_profile_file_is_skipped(self, tmp_path):
        base = tmp_path / "flyproxy.yaml"
        base.write_text("app:\n  name: test\n")

        config = Config.from_file(base, active_profiles=["nonexistent"])
        assert config.get("app.name") == "test"
        assert len(config.loaded_sources) == 2

    def test_env_vars_still_win(self, tmp_path, monkeypatch):
        base = tmp_path / "flyproxy.yaml"
        base.write_text("app:\n  name: base\n")
        (tmp_path / "flyproxy-dev.yaml").write_text("app:\n  name: dev\n")

        monkeypatch.setenv("FLYPROXY_APP_NAME", "env-wins")
        config = Config.from_file(base, active_profiles=["dev"])
        assert config.get("app.name") == "env-wins"
