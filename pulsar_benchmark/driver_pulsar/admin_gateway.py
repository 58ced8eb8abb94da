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

"""Synchronous facade over the Pulsar admin REST API (``/admin/v2``)."""

import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from pulsar_benchmark.utils.logging import LoggerMixin
from .config import ClientConfig, PersistenceConfig
from .errors import AdminApiError, ConflictError, NotFoundError
from .topic_name import TopicName

ADMIN_ROOT = "admin/v2"
UNLIMITED_BACKLOG_BYTES = 2 ** 63 - 1


class HostnameTolerantAdapter(HTTPAdapter):
    """HTTPS adapter that verifies the certificate chain but not the hostname."""

    def __init__(self, **kwargs):
        self.ssl_context = ssl.create_default_context()
        self.ssl_context.check_hostname = False
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs['ssl_context'] = self.ssl_context
        kwargs['assert_hostname'] = False
        return super().init_poolmanager(*args, **kwargs)


class PulsarAdminGateway(LoggerMixin):
    """Tenant, namespace, topic and subscription administration."""

    def __init__(self, client_config: ClientConfig, session: Optional[requests.Session] = None,
                 async_workers: int = 4):
        super().__init__()
        self.http_url = client_config.http_url.rstrip('/')
        self.timeout = client_config.admin_request_timeout_seconds
        self.session = session or requests.Session()
        self._configure_session(client_config)
        self._executor = ThreadPoolExecutor(max_workers=async_workers,
                                            thread_name_prefix="pulsar-admin")

    def _configure_session(self, client_config: ClientConfig):
        if client_config.admin_uses_tls:
            if client_config.tls_allow_insecure_connection:
                self.session.verify = False
            else:
                if client_config.tls_trust_certs_file_path:
                    self.session.verify = client_config.tls_trust_certs_file_path
                if not client_config.tls_enable_hostname_verification:
                    self.session.mount('https://', HostnameTolerantAdapter())

        auth = client_config.authentication
        if auth.enabled:
            if auth.is_token:
                self.session.headers['Authorization'] = f"Bearer {auth.token()}"
            elif auth.is_tls:
                self.session.cert = auth.tls_cert_files()
            else:
                self.logger.warning(f"Authentication plugin {auth.plugin} is not supported "
                                    f"by the admin client; requests are sent unauthenticated")

    # Tenants

    def list_tenants(self) -> List[str]:
        return self._request('GET', 'tenants')

    def ensure_tenant(self, tenant: str, cluster: str) -> bool:
        """
        Create ``tenant`` allowed on ``cluster`` unless it exists.

        Another worker creating the same tenant concurrently is not an error.

        :return: True if this call created the tenant
        """
        if tenant in self.list_tenants():
            return False
        try:
            self._request('PUT', f'tenants/{tenant}',
                          json={'adminRoles': [], 'allowedClusters': [cluster]})
            return True
        except ConflictError:
            # Lost the race against another initializing worker
            self.logger.debug(f"Tenant {tenant} was created concurrently")
            return False

    # Namespaces

    def list_namespaces(self, tenant: str) -> List[str]:
        return self._request('GET', f'namespaces/{tenant}')

    def create_namespace(self, namespace: str):
        self._request('PUT', f'namespaces/{namespace}')

    def delete_namespace(self, namespace: str, force: bool = False):
        self._request('DELETE', f'namespaces/{namespace}', params={'force': _flag(force)})

    def set_persistence(self, namespace: str, persistence: PersistenceConfig):
        self._request('POST', f'namespaces/{namespace}/persistence', json={
            'bookkeeperEnsemble': persistence.ensemble_size,
            'bookkeeperWriteQuorum': persistence.write_quorum,
            'bookkeeperAckQuorum': persistence.ack_quorum,
            'managedLedgerMaxMarkDeleteRate': 1.0,
        })

    def set_backlog_quota(self, namespace: str, limit_size: int = UNLIMITED_BACKLOG_BYTES,
                          policy: str = 'producer_exception'):
        self._request('POST', f'namespaces/{namespace}/backlogQuota',
                      params={'backlogQuotaType': 'destination_storage'},
                      json={'limitSize': limit_size, 'limit': limit_size, 'policy': policy})

    def set_deduplication(self, namespace: str, enabled: bool):
        self._request('POST', f'namespaces/{namespace}/deduplication', json=enabled)

    def apply_persistence_policy(self, namespace: str, persistence: PersistenceConfig):
        """Apply replication, an unlimited backlog quota and the deduplication flag."""
        self.set_persistence(namespace, persistence)
        self.set_backlog_quota(namespace)
        self.set_deduplication(namespace, persistence.deduplication_enabled)

    # Topics

    def list_topics(self, namespace: str) -> List[str]:
        """List topics of a namespace; partitioned topics appear as their partitions."""
        return self._request('GET', f'namespaces/{namespace}/topics')

    def list_partitioned_topics(self, namespace: str, domain: str = 'persistent') -> List[str]:
        return self._request('GET', f'{domain}/{namespace}/partitioned')

    def get_partition_count(self, topic: str) -> int:
        """
        Number of partitions of ``topic``; 0 for a non-partitioned topic.

        :raises AdminApiError: if the request fails or the metadata is malformed
        """
        metadata = self._request('GET', f'{TopicName.parse(topic).rest_path}/partitions')
        if metadata is None:
            return 0
        partitions = metadata.get('partitions', 0) if isinstance(metadata, dict) else None
        if not isinstance(partitions, int) or isinstance(partitions, bool) or partitions < 0:
            raise AdminApiError(f"Malformed partition metadata for {topic}: {metadata!r}")
        return partitions

    def create_partitioned_topic(self, topic: str, partitions: int):
        self._request('PUT', f'{TopicName.parse(topic).rest_path}/partitions', json=partitions)

    def create_partitioned_topic_async(self, topic: str, partitions: int) -> Future:
        return self._executor.submit(self.create_partitioned_topic, topic, partitions)

    def delete_topic(self, topic: str, force: bool = False):
        self._request('DELETE', TopicName.parse(topic).rest_path, params={'force': _flag(force)})

    def delete_partitioned_topic(self, topic: str, force: bool = False):
        self._request('DELETE', f'{TopicName.parse(topic).rest_path}/partitions',
                      params={'force': _flag(force)})

    # Subscriptions

    def list_subscriptions(self, topic: str) -> List[str]:
        return self._request('GET', f'{TopicName.parse(topic).rest_path}/subscriptions')

    def delete_subscription(self, topic: str, subscription: str, force: bool = False):
        self._request('DELETE',
                      f'{TopicName.parse(topic).rest_path}/subscription/{quote(subscription, safe="")}',
                      params={'force': _flag(force)})

    def close(self):
        self._executor.shutdown(wait=False)
        self.session.close()

    def _request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None) -> Any:
        url = f"{self.http_url}/{ADMIN_ROOT}/{path}"
        kwargs = {'params': params, 'timeout': self.timeout}
        if json is not None:
            kwargs['json'] = json
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise AdminApiError(f"{method} {url} failed: {e}") from e

        if response.status_code == 409:
            raise ConflictError(f"{method} {url}: conflict: {_reason(response)}", 409)
        if response.status_code == 404:
            raise NotFoundError(f"{method} {url}: not found: {_reason(response)}", 404)
        if response.status_code >= 400:
            raise AdminApiError(f"{method} {url}: HTTP {response.status_code}: {_reason(response)}",
                                response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def _flag(value: bool) -> str:
    return 'true' if value else 'false'


def _reason(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and 'reason' in body:
        return body['reason']
    return str(body)
