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

"""Assembles one logical consumer out of a subscription per partition."""

from concurrent.futures import Future
from typing import Callable

from pulsar_benchmark.driver.consumer_callback import ConsumerCallback
from pulsar_benchmark.utils.futures import completed_future
from pulsar_benchmark.utils.logging import LoggerMixin
from .admin_gateway import PulsarAdminGateway
from .config import ConsumerConfig
from .data_plane_gateway import PulsarDataPlaneGateway
from .errors import AdminApiError, DiscoveryFailure
from .pulsar_benchmark_consumer import PulsarBenchmarkConsumer
from .topic_name import partition_topic

NANOS_PER_MILLI = 1_000_000


class ConsumerFanout(LoggerMixin):
    """Subscribes to every partition of a topic and aggregates the consumers."""

    def __init__(self, admin: PulsarAdminGateway, data_plane: PulsarDataPlaneGateway,
                 consumer_config: ConsumerConfig):
        super().__init__()
        self.admin = admin
        self.data_plane = data_plane
        self.consumer_config = consumer_config

    def create_consumer(self, topic: str, subscription_name: str,
                        callback: ConsumerCallback) -> Future:
        """
        Create a consumer for ``topic``.

        By default the returned future holds the handle right away while the
        subscriptions complete in the background (see
        PulsarBenchmarkConsumer.ready). With waitForAllSubscriptions it only
        resolves once every subscription succeeded.
        """
        try:
            partitions = self.admin.get_partition_count(topic)
        except AdminApiError as e:
            discovery_error = DiscoveryFailure(topic, e)
            self.logger.warning(f"{discovery_error}; subscribing to the topic directly")
            return self._subscribe_single(topic, subscription_name, callback, discovery_error)

        listener = self.message_listener(callback)
        handle = PulsarBenchmarkConsumer(topic, subscription_name, max(partitions, 1))
        if partitions > 0:
            for i in range(partitions):
                handle.attach(self.data_plane.subscribe_async(
                    partition_topic(topic, i), subscription_name, listener))
        else:
            handle.attach(self.data_plane.subscribe_async(topic, subscription_name, listener))

        self.logger.debug(f"Subscribing {subscription_name} to {topic} "
                          f"across {handle.expected_members} consumer(s)")

        if self.consumer_config.wait_for_all_subscriptions:
            return self._when_ready(handle)
        return completed_future(handle)

    def _subscribe_single(self, topic: str, subscription_name: str, callback: ConsumerCallback,
                          discovery_error: DiscoveryFailure) -> Future:
        handle = PulsarBenchmarkConsumer(topic, subscription_name, 1, discovery_error=discovery_error)
        handle.attach(self.data_plane.subscribe_async(
            topic, subscription_name, self.message_listener(callback)))
        return self._when_ready(handle)

    @staticmethod
    def _when_ready(handle: PulsarBenchmarkConsumer) -> Future:
        result = Future()

        def _on_ready(ready: Future):
            exc = ready.exception()
            if exc is not None:
                handle.close()
                result.set_exception(exc)
            else:
                result.set_result(handle)

        handle.ready.add_done_callback(_on_ready)
        return result

    def message_listener(self, callback: ConsumerCallback) -> Callable:
        """Listener forwarding payload and publish time to ``callback``, then acknowledging."""
        fire_and_forget = self.consumer_config.fire_and_forget_ack
        logger = self.logger

        def on_message(consumer, msg):
            callback.message_received(msg.data(), msg.publish_timestamp() * NANOS_PER_MILLI)
            try:
                consumer.acknowledge(msg)
            except Exception as e:
                if fire_and_forget:
                    logger.debug(f"Ignored acknowledge failure: {e}")
                else:
                    logger.warning(f"Failed to acknowledge message {msg.message_id()}: {e}")

        return on_message
