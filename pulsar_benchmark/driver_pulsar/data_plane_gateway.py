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

"""Facade over ``pulsar.Client`` for producer and consumer creation."""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Mapping

import pulsar

from pulsar_benchmark.utils.logging import LoggerMixin
from .config import AuthenticationConfig, ClientConfig, ConsumerConfig
from .errors import ProduceFailure, SetupError, SubscribeFailure

SUBSCRIPTION_TYPES = {
    'Exclusive': pulsar.ConsumerType.Exclusive,
    'Shared': pulsar.ConsumerType.Shared,
    'Failover': pulsar.ConsumerType.Failover,
    'Key_Shared': pulsar.ConsumerType.KeyShared,
}

NATIVE_PLUGIN_SUFFIXES = ('.so', '.dylib', '.dll')


def build_authentication(auth: AuthenticationConfig):
    """
    Map the configured plugin onto a pulsar-client authentication object.

    Token, TLS and OAuth2 plugins are recognized by their Java class name or
    short name. Any other plugin must be the path of a native authentication
    library.

    :raises SetupError: if the plugin is neither known nor a native library
    """
    if not auth.enabled:
        return None
    if auth.is_token:
        return pulsar.AuthenticationToken(auth.token())
    if auth.is_tls:
        cert_file, key_file = auth.tls_cert_files()
        return pulsar.AuthenticationTLS(cert_file, key_file)
    if auth.is_oauth2:
        return pulsar.AuthenticationOauth2(auth.data or '')
    if auth.plugin.endswith(NATIVE_PLUGIN_SUFFIXES):
        return pulsar.Authentication(auth.plugin, auth.data or '')
    raise SetupError(f"Unsupported authentication plugin {auth.plugin}: expected token, tls, "
                     f"oauth2 or the path of a native authentication library")


def build_client(client_config: ClientConfig) -> pulsar.Client:
    kwargs = {
        'authentication': build_authentication(client_config.authentication),
        'operation_timeout_seconds': client_config.operation_timeout_seconds,
        'io_threads': client_config.io_threads,
        'message_listener_threads': client_config.effective_listener_threads(),
        'concurrent_lookup_requests': client_config.concurrent_lookup_requests,
    }
    if client_config.use_tls:
        kwargs.update(
            use_tls=True,
            tls_trust_certs_file_path=client_config.tls_trust_certs_file_path,
            tls_allow_insecure_connection=client_config.tls_allow_insecure_connection,
            tls_validate_hostname=client_config.tls_enable_hostname_verification,
        )
    return pulsar.Client(client_config.service_url, **kwargs)


class PulsarDataPlaneGateway(LoggerMixin):
    """
    Creates producers and consumers without blocking the caller.

    ``pulsar.Client`` subscribe and create_producer calls block, so they run on
    a private thread pool and are handed back as futures.
    """

    def __init__(self, client_config: ClientConfig, consumer_config: ConsumerConfig,
                 client: pulsar.Client = None, max_workers: int = None):
        super().__init__()
        self.client_config = client_config
        self.consumer_config = consumer_config
        self.client = client if client is not None else build_client(client_config)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or max(4, client_config.io_threads),
            thread_name_prefix="pulsar-data-plane"
        )
        self.logger.info(f"Created Pulsar client for service URL {client_config.service_url}")

    def subscribe_async(self, topic: str, subscription_name: str,
                        message_listener: Callable) -> Future:
        """Subscribe one physical consumer; the future yields a ``pulsar.Consumer``."""
        return self._executor.submit(self._subscribe, topic, subscription_name, message_listener)

    def _subscribe(self, topic: str, subscription_name: str, message_listener: Callable):
        try:
            return self.client.subscribe(
                topic,
                subscription_name,
                consumer_type=SUBSCRIPTION_TYPES[self.consumer_config.subscription_type],
                message_listener=message_listener,
                receiver_queue_size=self.consumer_config.receiver_queue_size,
                max_total_receiver_queue_size_across_partitions=(
                    self.consumer_config.max_total_receiver_queue_size_across_partitions),
            )
        except Exception as e:
            raise SubscribeFailure(topic, subscription_name, e) from e

    def create_producer_async(self, topic: str, template: Mapping) -> Future:
        """Create a producer from ``template`` keyword arguments; the future yields a ``pulsar.Producer``."""
        return self._executor.submit(self._create_producer, topic, dict(template))

    def _create_producer(self, topic: str, template: dict):
        try:
            return self.client.create_producer(topic, **template)
        except Exception as e:
            raise ProduceFailure(topic, e) from e

    def close(self):
        self._executor.shutdown(wait=True)
        self.client.close()
