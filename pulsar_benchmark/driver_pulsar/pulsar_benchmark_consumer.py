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
from typing import List, Optional, Tuple

from pulsar_benchmark.driver.benchmark_consumer import BenchmarkConsumer
from pulsar_benchmark.utils.logging import LoggerMixin
from .errors import DiscoveryFailure


class PulsarBenchmarkConsumer(BenchmarkConsumer, LoggerMixin):
    """
    One logical consumer backed by one physical consumer per partition.

    Members join asynchronously as their subscribe futures resolve, so right
    after creation the handle may own fewer members than expected. ``ready``
    resolves (with the handle) once every subscribe finished, or fails with
    the first subscribe error. A member whose subscribe completes after
    close() is closed immediately.
    """

    def __init__(self, topic: str, subscription_name: str, expected_members: int,
                 discovery_error: Optional[DiscoveryFailure] = None):
        super().__init__()
        self.topic = topic
        self.subscription_name = subscription_name
        self.expected_members = expected_members
        self.discovery_error = discovery_error
        self.ready = Future()
        self._lock = threading.Lock()
        self._consumers: List = []
        self._pending = expected_members
        self._failure: Optional[BaseException] = None
        self._closed = False
        self._paused = False

    @property
    def members(self) -> Tuple:
        with self._lock:
            return tuple(self._consumers)

    def attach(self, subscribe_future: Future):
        """Adopt the consumer produced by ``subscribe_future`` when it resolves."""
        subscribe_future.add_done_callback(self._on_subscribed)

    def _on_subscribed(self, future: Future):
        exc = future.exception()
        orphan = None
        with self._lock:
            self._pending -= 1
            if exc is None:
                consumer = future.result()
                if self._closed:
                    orphan = consumer
                else:
                    self._consumers.append(consumer)
                    if self._paused:
                        consumer.pause_message_listener()
            elif self._failure is None:
                self._failure = exc
            finished = self._pending == 0
            failure = self._failure

        if exc is not None:
            self.logger.error(f"Subscription {self.subscription_name} on {self.topic} failed: {exc}")
        if orphan is not None:
            self._close_member(orphan)
        if finished:
            if failure is not None:
                self.ready.set_exception(failure)
            else:
                self.ready.set_result(self)

    def wait_until_ready(self, timeout: Optional[float] = None) -> 'PulsarBenchmarkConsumer':
        """Block until every member subscribed; re-raises the first subscribe failure."""
        return self.ready.result(timeout)

    def pause(self):
        with self._lock:
            self._paused = True
            consumers = list(self._consumers)
        for consumer in consumers:
            consumer.pause_message_listener()

    def resume(self):
        with self._lock:
            self._paused = False
            consumers = list(self._consumers)
        for consumer in consumers:
            consumer.resume_message_listener()

    def close(self):
        with self._lock:
            self._closed = True
            consumers = self._consumers
            self._consumers = []
        for consumer in consumers:
            self._close_member(consumer)

    def _close_member(self, consumer):
        try:
            consumer.close()
        except Exception as e:
            self.logger.warning(f"Error closing consumer on {self.topic}: {e}")
