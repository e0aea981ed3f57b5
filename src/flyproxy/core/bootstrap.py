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
"""Composition root — wires configuration, logging and proxy caches together."""

from __future__ import annotations

from flyproxy.core.config import Config
from flyproxy.logging.port import LoggingPort
from flyproxy.logging.structlog_adapter import StructlogAdapter
from flyproxy.proxy.factory import ProxyFactory


def create_proxy_factory(config: Config | None = None, logging_port: LoggingPort | None = None) -> ProxyFactory:
    """Configure logging from *config* and return a factory with fresh caches.

    Without *config* only the framework defaults apply. The returned
    factory owns its caches; call this once per application and share the
    result rather than creating factories per request.
    """
    if config is None:
        config = Config.defaults()

    logging_port = logging_port if logging_port is not None else StructlogAdapter()
    logging_port.configure(config)
    logger = logging_port.get_logger("flyproxy.core")

    factory = ProxyFactory.from_config(config)
    logger.info(
        "proxy_factory_ready",
        sources=config.loaded_sources,
        check_results=factory.properties.check_results,
        check_constraints=factory.properties.check_constraints,
    )
    return factory
