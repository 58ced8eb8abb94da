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

"""Configuration model of the Pulsar driver, loaded from the driver YAML file."""

import json
import os
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, validator

SERVICE_URL_ENV = "PY_OMB_PULSAR_SERVICE_URL"
HTTP_URL_ENV = "PY_OMB_PULSAR_HTTP_URL"

TOKEN_AUTH_PLUGINS = (
    "org.apache.pulsar.client.impl.auth.AuthenticationToken",
    "token",
)

TLS_AUTH_PLUGINS = (
    "org.apache.pulsar.client.impl.auth.AuthenticationTls",
    "tls",
)

OAUTH2_AUTH_PLUGINS = (
    "org.apache.pulsar.client.impl.auth.oauth2.AuthenticationOAuth2",
    "oauth2",
)


class PersistenceConfig(BaseModel):
    """BookKeeper replication settings applied to the benchmark namespace."""

    ensemble_size: int = Field(alias="ensembleSize", default=3, ge=1)
    write_quorum: int = Field(alias="writeQuorum", default=3, ge=1)
    ack_quorum: int = Field(alias="ackQuorum", default=2, ge=1)
    deduplication_enabled: bool = Field(alias="deduplicationEnabled", default=False)

    class Config:
        populate_by_name = True
        frozen = True

    @validator('write_quorum')
    def write_quorum_fits_ensemble(cls, v, values):
        ensemble = values.get('ensemble_size')
        if ensemble is not None and v > ensemble:
            raise ValueError(f"writeQuorum ({v}) must not exceed ensembleSize ({ensemble})")
        return v

    @validator('ack_quorum')
    def ack_quorum_fits_write_quorum(cls, v, values):
        write_quorum = values.get('write_quorum')
        if write_quorum is not None and v > write_quorum:
            raise ValueError(f"ackQuorum ({v}) must not exceed writeQuorum ({write_quorum})")
        return v


class AuthenticationConfig(BaseModel):
    """Authentication plugin class name and its parameter string."""

    plugin: Optional[str] = None
    data: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def enabled(self) -> bool:
        return bool(self.plugin)

    @property
    def is_token(self) -> bool:
        return self.plugin in TOKEN_AUTH_PLUGINS

    @property
    def is_tls(self) -> bool:
        return self.plugin in TLS_AUTH_PLUGINS

    @property
    def is_oauth2(self) -> bool:
        return self.plugin in OAUTH2_AUTH_PLUGINS

    def tls_cert_files(self) -> Tuple[Optional[str], Optional[str]]:
        """Certificate and key paths of a TLS plugin (``tlsCertFile:<path>,tlsKeyFile:<path>``)."""
        params = dict(item.split(":", 1) for item in (self.data or "").split(",") if ":" in item)
        return params.get("tlsCertFile"), params.get("tlsKeyFile")

    def token(self) -> Optional[str]:
        """Resolve the token of a token plugin (``token:<jwt>``, ``file:<path>`` or a bare token)."""
        if not self.is_token or not self.data:
            return None
        if self.data.startswith("token:"):
            return self.data[len("token:"):]
        if self.data.startswith("file:"):
            path = self.data[len("file:"):]
            if path.startswith("//"):
                path = path[2:]
            return Path(path).read_text(encoding='utf-8').strip()
        return self.data


class ClientConfig(BaseModel):
    """Connection settings shared by the data-plane client and the admin client."""

    service_url: str = Field(alias="serviceUrl", default="pulsar://localhost:6650")
    http_url: str = Field(alias="httpUrl", default="http://localhost:8080")
    io_threads: int = Field(alias="ioThreads", default=8, ge=1)
    listener_threads: Optional[int] = Field(alias="listenerThreads", default=None, ge=1)
    operation_timeout_seconds: int = Field(alias="operationTimeoutSeconds", default=30, ge=1)
    admin_request_timeout_seconds: float = Field(alias="adminRequestTimeoutSeconds", default=60.0, gt=0)
    concurrent_lookup_requests: int = Field(alias="concurrentLookupRequests", default=50000, ge=1)

    namespace_prefix: str = Field(alias="namespacePrefix", default="benchmark/ns")
    cluster_name: str = Field(alias="clusterName", default="standalone")
    topic_type: str = Field(alias="topicType", default="persistent")

    tls_allow_insecure_connection: bool = Field(alias="tlsAllowInsecureConnection", default=False)
    tls_enable_hostname_verification: bool = Field(alias="tlsEnableHostnameVerification", default=False)
    tls_trust_certs_file_path: Optional[str] = Field(alias="tlsTrustCertsFilePath", default=None)

    authentication: AuthenticationConfig = Field(default_factory=AuthenticationConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)

    class Config:
        populate_by_name = True
        frozen = True

    @validator('namespace_prefix')
    def namespace_prefix_has_tenant(cls, v):
        tenant, _, prefix = v.partition('/')
        if not tenant or not prefix:
            raise ValueError(f"namespacePrefix must look like '<tenant>/<prefix>', got '{v}'")
        return v

    @validator('topic_type')
    def topic_type_is_known(cls, v):
        if v not in ('persistent', 'non-persistent'):
            raise ValueError(f"topicType must be 'persistent' or 'non-persistent', got '{v}'")
        return v

    @property
    def tenant(self) -> str:
        return self.namespace_prefix.split('/')[0]

    @property
    def use_tls(self) -> bool:
        return self.service_url.startswith("pulsar+ssl")

    @property
    def admin_uses_tls(self) -> bool:
        return self.http_url.startswith("https")

    def effective_listener_threads(self) -> int:
        return self.listener_threads or os.cpu_count() or 1


class ProducerConfig(BaseModel):
    """Template every benchmark producer is built from."""

    batching_enabled: bool = Field(alias="batchingEnabled", default=True)
    batching_max_publish_delay_ms: int = Field(alias="batchingMaxPublishDelayMs", default=1, ge=0)
    batching_max_bytes: int = Field(alias="batchingMaxBytes", default=128 * 1024, ge=1)
    batching_max_messages: int = Field(alias="batchingMaxMessages", default=2 ** 31 - 1, ge=1)
    block_if_queue_full: bool = Field(alias="blockIfQueueFull", default=True)
    pending_queue_size: int = Field(alias="pendingQueueSize", default=1000, ge=0)
    max_pending_messages_across_partitions: int = Field(
        alias="maxPendingMessagesAcrossPartitions", default=50000, ge=0)

    class Config:
        populate_by_name = True
        frozen = True


class ConsumerConfig(BaseModel):
    """Settings applied to every physical consumer."""

    receiver_queue_size: int = Field(alias="receiverQueueSize", default=1000, ge=0)
    max_total_receiver_queue_size_across_partitions: int = Field(
        alias="maxTotalReceiverQueueSizeAcrossPartitions", default=50000, ge=0)
    subscription_type: str = Field(alias="subscriptionType", default="Failover")
    fire_and_forget_ack: bool = Field(alias="fireAndForgetAck", default=True)
    wait_for_all_subscriptions: bool = Field(alias="waitForAllSubscriptions", default=False)

    class Config:
        populate_by_name = True
        frozen = True

    @validator('subscription_type')
    def subscription_type_is_known(cls, v):
        if v not in ('Exclusive', 'Shared', 'Failover', 'Key_Shared'):
            raise ValueError(f"Unsupported subscriptionType: {v}")
        return v


class CleanupConfig(BaseModel):
    """Scope of the cleanup sweeps run at initialize and close."""

    enabled: bool = True
    delete_namespaces: bool = Field(alias="deleteNamespaces", default=False)

    class Config:
        populate_by_name = True
        frozen = True


class PulsarConfig(BaseModel):
    """Complete driver configuration."""

    name: str = "Pulsar"
    client: ClientConfig = Field(default_factory=ClientConfig)
    producer: ProducerConfig = Field(default_factory=ProducerConfig)
    consumer: ConsumerConfig = Field(default_factory=ConsumerConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)

    class Config:
        populate_by_name = True
        frozen = True

    def to_json(self) -> str:
        """Pretty JSON of the configuration with credentials masked."""
        data = self.dict(by_alias=True)
        auth = data['client'].get('authentication') or {}
        if auth.get('data'):
            auth['data'] = '******'
        return json.dumps(data, indent=2)


def load_config(file_path: Union[str, Path]) -> PulsarConfig:
    """Load the driver configuration from YAML, applying environment overrides."""
    with open(file_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    return config_from_dict(data)


def config_from_dict(data: dict) -> PulsarConfig:
    data = dict(data)
    client = dict(data.get('client') or {})
    if os.getenv(SERVICE_URL_ENV):
        client['serviceUrl'] = os.getenv(SERVICE_URL_ENV)
    if os.getenv(HTTP_URL_ENV):
        client['httpUrl'] = os.getenv(HTTP_URL_ENV)
    data['client'] = client
    return PulsarConfig(**data)
