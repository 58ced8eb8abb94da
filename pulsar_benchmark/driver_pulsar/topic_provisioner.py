# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from concurrent.futures import Future
from enum import Enum
from typing import Callable

from pulsar_benchmark.utils.futures import completed_future
from pulsar_benchmark.utils.logging import LoggerMixin
from .admin_gateway import PulsarAdminGateway
from .config import ClientConfig
from .errors import SetupError


class ProvisioningState(str, Enum):
    """Provisioning steps, in the only order they can happen."""
    INIT = "INIT"
    TENANT_ENSURED = "TENANT_ENSURED"
    NAMESPACE_CREATED = "NAMESPACE_CREATED"
    POLICY_APPLIED = "POLICY_APPLIED"
    READY = "READY"


class TopicProvisioner(LoggerMixin):
    """Creates the benchmark tenant, an isolated namespace and its policies, then topics."""

    def __init__(self, admin: PulsarAdminGateway, client_config: ClientConfig,
                 suffix_generator: Callable[[], str]):
        super().__init__()
        self.admin = admin
        self.client_config = client_config
        self.suffix_generator = suffix_generator
        self.state = ProvisioningState.INIT
        self.namespace = None

    def provision(self) -> str:
        """
        Run every provisioning step.

        :return: the namespace created for this driver instance
        :raises SetupError: if any step fails
        """
        if self.state != ProvisioningState.INIT:
            raise SetupError(f"Provisioning already ran (state {self.state.value})")

        tenant = self.client_config.tenant
        cluster = self.client_config.cluster_name
        namespace = f"{self.client_config.namespace_prefix}-{self.suffix_generator()}"
        persistence = self.client_config.persistence

        self._step(ProvisioningState.TENANT_ENSURED, f"ensure tenant {tenant}",
                   lambda: self.admin.ensure_tenant(tenant, cluster))
        self.logger.info(f"Created Pulsar tenant {tenant} with allowed cluster {cluster}")

        self._step(ProvisioningState.NAMESPACE_CREATED, f"create namespace {namespace}",
                   lambda: self.admin.create_namespace(namespace))
        self.namespace = namespace
        self.logger.info(f"Created Pulsar namespace {namespace}")

        self._step(ProvisioningState.POLICY_APPLIED, f"apply persistence policy to {namespace}",
                   lambda: self.admin.apply_persistence_policy(namespace, persistence))
        self.logger.info(f"Applied persistence configuration for namespace {namespace}: "
                         f"{persistence.dict(by_alias=True)}")

        self.state = ProvisioningState.READY
        return namespace

    def _step(self, target: ProvisioningState, description: str, action: Callable):
        try:
            action()
        except Exception as e:
            self.logger.error(f"Failed to {description} (state {self.state.value}): {e}")
            raise SetupError(f"Failed to {description}: {e}") from e
        self.state = target

    def create_topic(self, topic: str, partitions: int) -> Future:
        """Create ``topic``; a single-partition topic is created implicitly on first use."""
        if partitions == 1:
            return completed_future(None)
        return self.admin.create_partitioned_topic_async(topic, partitions)
