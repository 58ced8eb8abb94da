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
from types import MappingProxyType
from typing import Mapping

from pulsar_benchmark.utils.futures import map_future
from .config import ProducerConfig
from .data_plane_gateway import PulsarDataPlaneGateway
from .pulsar_benchmark_producer import PulsarBenchmarkProducer


def producer_template(producer_config: ProducerConfig) -> Mapping:
    """Keyword arguments of ``pulsar.Client.create_producer`` shared by every producer."""
    return MappingProxyType({
        'batching_enabled': producer_config.batching_enabled,
        'batching_max_publish_delay_ms': producer_config.batching_max_publish_delay_ms,
        'batching_max_allowed_size_in_bytes': producer_config.batching_max_bytes,
        'batching_max_messages': producer_config.batching_max_messages,
        'block_if_queue_full': producer_config.block_if_queue_full,
        'max_pending_messages': producer_config.pending_queue_size,
        'max_pending_messages_across_partitions': producer_config.max_pending_messages_across_partitions,
    })


class ProducerFactory:
    """Builds one producer per topic from a fixed template."""

    def __init__(self, data_plane: PulsarDataPlaneGateway, producer_config: ProducerConfig):
        self.data_plane = data_plane
        self.template = producer_template(producer_config)

    def create_producer(self, topic: str) -> Future:
        return map_future(self.data_plane.create_producer_async(topic, self.template),
                          lambda producer: PulsarBenchmarkProducer(topic, producer))
