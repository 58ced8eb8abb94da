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

from dataclasses import dataclass
from urllib.parse import quote

PARTITION_SUFFIX = "-partition-"
DEFAULT_DOMAIN = "persistent"
DEFAULT_NAMESPACE = "public/default"


@dataclass(frozen=True)
class TopicName:
    """
    Fully qualified Pulsar topic name: ``<domain>://<tenant>/<namespace>/<local>``.

    Short names (``my-topic``) resolve to ``persistent://public/default/my-topic``.
    """
    domain: str
    tenant: str
    namespace: str
    local_name: str

    @classmethod
    def parse(cls, topic: str) -> 'TopicName':
        if "://" in topic:
            domain, rest = topic.split("://", 1)
        else:
            domain, rest = DEFAULT_DOMAIN, topic
            if "/" not in rest:
                rest = f"{DEFAULT_NAMESPACE}/{rest}"

        parts = rest.split("/", 2)
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid topic name: {topic}")
        tenant, namespace, local_name = parts
        return cls(domain, tenant, namespace, local_name)

    @property
    def namespace_name(self) -> str:
        return f"{self.tenant}/{self.namespace}"

    @property
    def rest_path(self) -> str:
        """Path of the topic under the admin API root."""
        return f"{self.domain}/{self.tenant}/{self.namespace}/{quote(self.local_name, safe='')}"

    def partition(self, index: int) -> 'TopicName':
        return TopicName(self.domain, self.tenant, self.namespace,
                         f"{self.local_name}{PARTITION_SUFFIX}{index}")

    def __str__(self):
        return f"{self.domain}://{self.tenant}/{self.namespace}/{self.local_name}"


def partition_topic(topic: str, index: int) -> str:
    """Name of partition ``index`` of ``topic``, keeping the caller's spelling."""
    return f"{topic}{PARTITION_SUFFIX}{index}"
