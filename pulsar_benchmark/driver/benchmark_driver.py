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

from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Optional

from pulsar_benchmark.utils.futures import all_of
from .consumer_callback import ConsumerCallback


@dataclass(frozen=True)
class TopicInfo:
    """Topic name and partition count requested by the harness."""
    topic: str
    partitions: int


class BenchmarkDriver(ABC):
    """
    Contract between the benchmark harness and a messaging system.

    A driver goes through a single initialize -> operate -> close lifecycle.
    """

    @abstractmethod
    def initialize(self, configuration_file: str, stats_logger=None):
        """Load the driver configuration and prepare the cluster."""
        pass

    @abstractmethod
    def get_topic_name_prefix(self) -> str:
        """Get the prefix the harness uses to build topic names."""
        pass

    @abstractmethod
    def create_topic(self, topic: str, partitions: int) -> Future:
        """Create a topic with the given number of partitions."""
        pass

    def create_topics(self, topic_infos: List[TopicInfo]) -> Future:
        """Create several topics; completes once every topic is created."""
        return all_of(self.create_topic(info.topic, info.partitions) for info in topic_infos)

    @abstractmethod
    def notify_topic_creation(self, topic: str, partitions: int) -> Future:
        """Tell the driver that another worker created a topic."""
        pass

    @abstractmethod
    def create_producer(self, topic: str) -> Future:
        """Create a producer; the future yields a BenchmarkProducer."""
        pass

    @abstractmethod
    def create_consumer(
        self,
        topic: str,
        subscription_name: str,
        consumer_callback: ConsumerCallback,
        partition: Optional[int] = None
    ) -> Future:
        """Create a consumer; the future yields a BenchmarkConsumer."""
        pass

    @abstractmethod
    def close(self):
        """Release every resource held by the driver."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
