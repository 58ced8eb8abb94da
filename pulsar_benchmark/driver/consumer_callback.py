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


class ConsumerCallback(ABC):
    """Callback invoked by a consumer for every received message."""

    @abstractmethod
    def message_received(self, payload: bytes, publish_timestamp_ns: int):
        """
        Handle one received message.

        :param payload: Raw message payload
        :param publish_timestamp_ns: Publish time in nanoseconds since the epoch
        """
        pass
