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
from typing import Optional

import pulsar

from pulsar_benchmark.driver.benchmark_producer import BenchmarkProducer
from pulsar_benchmark.utils.logging import LoggerMixin
from .errors import ProduceFailure


class PulsarBenchmarkProducer(BenchmarkProducer, LoggerMixin):
    """Pulsar producer implementation bound to one topic."""

    def __init__(self, topic: str, producer: pulsar.Producer):
        super().__init__()
        self.topic = topic
        self.producer = producer

    def send_async(self, key: Optional[str], payload: bytes) -> Future:
        """
        Send message asynchronously.

        :param key: Message key (optional), used as the partition key
        :param payload: Message payload
        :return: Future completed with the message id
        """
        future = Future()

        def delivery_callback(res, msg_id):
            if res == pulsar.Result.Ok:
                future.set_result(msg_id)
            else:
                future.set_exception(ProduceFailure(self.topic, res))

        kwargs = {}
        if key is not None:
            kwargs['partition_key'] = key
        try:
            self.producer.send_async(payload, delivery_callback, **kwargs)
        except Exception as e:
            future.set_exception(ProduceFailure(self.topic, e))
        return future

    def close(self):
        """Flush pending messages and close the producer."""
        try:
            self.producer.flush()
        except Exception as e:
            self.logger.warning(f"Error flushing producer on {self.topic}: {e}")
        try:
            self.producer.close()
        except Exception as e:
            self.logger.warning(f"Error closing producer on {self.topic}: {e}")
