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

import base64
import itertools
import os
import threading
import time


class RandomSuffixGenerator:
    """Random 5-byte URL-safe suffix, unique with high probability across workers."""

    def __init__(self, num_bytes: int = 5):
        self.num_bytes = num_bytes

    def __call__(self) -> str:
        return base64.urlsafe_b64encode(os.urandom(self.num_bytes)).decode('ascii').rstrip('=')


class SequentialSuffixGenerator:
    """
    Deterministic suffix: a start stamp followed by a monotonic counter.

    The start stamp defaults to the process start time in milliseconds so that
    two processes sharing a tenant get different namespaces.
    """

    def __init__(self, start_stamp: str = None):
        if start_stamp is None:
            start_stamp = format(int(time.time() * 1000), 'x')
        self.start_stamp = start_stamp
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            value = next(self._counter)
        return f"{self.start_stamp}-{value}"
