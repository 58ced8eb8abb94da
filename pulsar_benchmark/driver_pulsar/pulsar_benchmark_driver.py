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

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import yaml

from pulsar_benchmark.driver.benchmark_driver import BenchmarkDriver
from pulsar_benchmark.driver.consumer_callback import ConsumerCallback
from pulsar_benchmark.utils.futures import completed_future, map_future
from pulsar_benchmark.utils.logging import LoggerMixin
from .admin_gateway import PulsarAdminGateway
from .cleanup_coordinator import CleanupCoordinator
from .config import ClientConfig, ConsumerConfig, PulsarConfig, load_config
from .consumer_fanout import ConsumerFanout
from .data_plane_gateway import PulsarDataPlaneGateway
from .errors import SetupError
from .namespace_suffix import RandomSuffixGenerator
from .producer_factory import ProducerFactory
from .pulsar_benchmark_consumer import PulsarBenchmarkConsumer
from .pulsar_benchmark_producer import PulsarBenchmarkProducer
from .topic_provisioner import TopicProvisioner


@dataclass
class DriverState:
    """Everything an initialized driver owns. Written once by initialize."""
    config: PulsarConfig
    admin: PulsarAdminGateway
    data_plane: PulsarDataPlaneGateway
    namespace: str
    provisioner: TopicProvisioner
    fanout: ConsumerFanout
    cleanup: CleanupCoordinator
    producer_factory: ProducerFactory
    producers: List[PulsarBenchmarkProducer] = field(default_factory=list)
    consumers: List[PulsarBenchmarkConsumer] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)


class PulsarBenchmarkDriver(BenchmarkDriver, LoggerMixin):
    """Pulsar implementation of BenchmarkDriver using pulsar-client and the admin REST API."""

    def __init__(
        self,
        suffix_generator: Callable[[], str] = None,
        admin_factory: Callable[[ClientConfig], PulsarAdminGateway] = PulsarAdminGateway,
        data_plane_factory: Callable[[ClientConfig, ConsumerConfig], PulsarDataPlaneGateway] = (
            PulsarDataPlaneGateway),
    ):
        super().__init__()
        self.suffix_generator = suffix_generator or RandomSuffixGenerator()
        self.admin_factory = admin_factory
        self.data_plane_factory = data_plane_factory
        self._state: Optional[DriverState] = None

    def initialize(self, configuration_file: str, stats_logger=None):
        """
        Initialize Pulsar driver from a YAML configuration file.

        :raises SetupError: if the file cannot be read or is not a valid configuration
        """
        try:
            config = load_config(configuration_file)
        except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
            raise SetupError(f"Invalid Pulsar driver configuration {configuration_file}: {e}") from e
        self.initialize_with_config(config)

    def initialize_with_config(self, config: PulsarConfig):
        """
        Connect, provision an isolated namespace and sweep leftovers of earlier runs.

        :raises SetupError: if the clients cannot be built or provisioning fails
        """
        if self._state is not None:
            raise SetupError("Pulsar driver is already initialized")

        self.logger.info(f"Pulsar driver configuration: {config.to_json()}")

        admin = None
        data_plane = None
        try:
            data_plane = self.data_plane_factory(config.client, config.consumer)
            admin = self.admin_factory(config.client)
            self.logger.info(f"Created Pulsar admin client for HTTP URL {config.client.http_url}")

            provisioner = TopicProvisioner(admin, config.client, self.suffix_generator)
            namespace = provisioner.provision()
        except Exception as e:
            self._close_quietly("admin client", admin)
            self._close_quietly("client", data_plane)
            if isinstance(e, SetupError):
                raise
            raise SetupError(f"Failed to initialize Pulsar driver: {e}") from e

        state = DriverState(
            config=config,
            admin=admin,
            data_plane=data_plane,
            namespace=namespace,
            provisioner=provisioner,
            fanout=ConsumerFanout(admin, data_plane, config.consumer),
            cleanup=CleanupCoordinator(admin, config.client.tenant,
                                       delete_namespaces=config.cleanup.delete_namespaces),
            producer_factory=ProducerFactory(data_plane, config.producer),
        )
        self._state = state

        if config.cleanup.enabled:
            state.cleanup.sweep(preserve=[namespace])

    @property
    def namespace(self) -> Optional[str]:
        return self._state.namespace if self._state else None

    def _require_state(self) -> DriverState:
        if self._state is None:
            raise RuntimeError("Pulsar driver is not initialized")
        return self._state

    def get_topic_name_prefix(self) -> str:
        state = self._require_state()
        return f"{state.config.client.topic_type}://{state.namespace}/test"

    def create_topic(self, topic: str, partitions: int) -> Future:
        return self._require_state().provisioner.create_topic(topic, partitions)

    def notify_topic_creation(self, topic: str, partitions: int) -> Future:
        # Topics become visible to other workers through the broker
        return completed_future(None)

    def create_producer(self, topic: str) -> Future:
        state = self._require_state()

        def _track(producer: PulsarBenchmarkProducer) -> PulsarBenchmarkProducer:
            with state.lock:
                state.producers.append(producer)
            return producer

        return map_future(state.producer_factory.create_producer(topic), _track)

    def create_consumer(
        self,
        topic: str,
        subscription_name: str,
        consumer_callback: ConsumerCallback,
        partition: Optional[int] = None
    ) -> Future:
        """Create a consumer over every partition of ``topic``; ``partition`` is ignored."""
        state = self._require_state()

        def _track(consumer: PulsarBenchmarkConsumer) -> PulsarBenchmarkConsumer:
            with state.lock:
                state.consumers.append(consumer)
            return consumer

        return map_future(state.fanout.create_consumer(topic, subscription_name, consumer_callback),
                          _track)

    def close(self):
        """Close producers, consumers and clients and sweep benchmark topics. Never raises."""
        self.logger.info("Shutting down Pulsar benchmark driver")

        state, self._state = self._state, None
        if state is None:
            return

        with state.lock:
            producers = list(state.producers)
            consumers = list(state.consumers)
            state.producers.clear()
            state.consumers.clear()

        for producer in producers:
            self._close_quietly("producer", producer)
        for consumer in consumers:
            self._close_quietly("consumer", consumer)

        if state.config.cleanup.enabled:
            try:
                state.cleanup.sweep()
            except Exception as e:
                self.logger.error(f"Cleanup sweep failed: {e}")

        self._close_quietly("client", state.data_plane)
        self._close_quietly("admin client", state.admin)

        self.logger.info("Pulsar benchmark driver successfully shut down")

    def _close_quietly(self, what: str, resource):
        if resource is None:
            return
        try:
            resource.close()
        except Exception as e:
            self.logger.warning(f"Error closing {what}: {e}")
