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
from typing import Optional


class BenchmarkProducer(ABC):
    """Producer bound to a single topic."""

    @abstractmethod
    def send_async(self, key: Optional[str], payload: bytes) -> Future:
        """
        Publish a message.

        :param key: Optional message key
        :param payload: Message payload
        :return: Future completed once the broker acknowledged the message
        """
        pass

    @abstractmethod
    def close(self):
        """Flush and close the producer."""
        pass
