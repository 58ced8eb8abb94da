"""Shared fixtures: in-memory stand-ins for the admin API and the Pulsar client."""

import threading
from concurrent.futures import Future
from typing import Dict, List

import pulsar
import pytest

from pulsar_benchmark.driver.consumer_callback import ConsumerCallback
from pulsar_benchmark.driver_pulsar.config import PulsarConfig
from pulsar_benchmark.driver_pulsar.errors import NotFoundError
from pulsar_benchmark.driver_pulsar.namespace_suffix import SequentialSuffixGenerator
from pulsar_benchmark.driver_pulsar.pulsar_benchmark_driver import PulsarBenchmarkDriver
from pulsar_benchmark.driver_pulsar.topic_name import TopicName


class FakeAdminGateway:
    """Admin gateway backed by dictionaries, with per-call failure injection.

    ``failures`` maps a method name, or ``(method name, first argument)``, to
    the exception that call should raise.
    """

    def __init__(self):
        self.tenants: Dict[str, str] = {}
        self.namespaces: Dict[str, dict] = {}
        self.failures = {}
        self.calls: List[tuple] = []
        self.closed = False

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.failures.get((name, args[0])) if args else None
        if exc is None:
            exc = self.failures.get(name)
        if exc is not None:
            raise exc

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def _namespace_of(self, topic):
        namespace = TopicName.parse(topic).namespace_name
        if namespace not in self.namespaces:
            raise NotFoundError(f"Namespace {namespace} does not exist", 404)
        return self.namespaces[namespace]

    def add_topic(self, topic, subscriptions=()):
        self._namespace_of(topic)['topics'][topic] = set(subscriptions)

    def ensure_tenant(self, tenant, cluster):
        self._call('ensure_tenant', tenant, cluster)
        if tenant in self.tenants:
            return False
        self.tenants[tenant] = cluster
        return True

    def create_namespace(self, namespace):
        self._call('create_namespace', namespace)
        self.namespaces[namespace] = {'topics': {}, 'partitioned': {}, 'persistence': None}

    def apply_persistence_policy(self, namespace, persistence):
        self._call('apply_persistence_policy', namespace, persistence)
        self.namespaces[namespace]['persistence'] = persistence

    def list_namespaces(self, tenant):
        self._call('list_namespaces', tenant)
        return [ns for ns in self.namespaces if ns.startswith(tenant + '/')]

    def list_topics(self, namespace):
        self._call('list_topics', namespace)
        return list(self.namespaces[namespace]['topics'])

    def list_partitioned_topics(self, namespace):
        self._call('list_partitioned_topics', namespace)
        return list(self.namespaces[namespace]['partitioned'])

    def list_subscriptions(self, topic):
        self._call('list_subscriptions', topic)
        return sorted(self._namespace_of(topic)['topics'][topic])

    def delete_subscription(self, topic, subscription, force=False):
        self._call('delete_subscription', topic, subscription, force)
        self._namespace_of(topic)['topics'][topic].discard(subscription)

    def delete_topic(self, topic, force=False):
        self._call('delete_topic', topic, force)
        del self._namespace_of(topic)['topics'][topic]

    def delete_partitioned_topic(self, topic, force=False):
        self._call('delete_partitioned_topic', topic, force)
        self._namespace_of(topic)['partitioned'].pop(topic, None)

    def delete_namespace(self, namespace, force=False):
        self._call('delete_namespace', namespace, force)
        del self.namespaces[namespace]

    def get_partition_count(self, topic):
        self._call('get_partition_count', topic)
        return self._namespace_of(topic)['partitioned'].get(topic, 0)

    def create_partitioned_topic(self, topic, partitions):
        self._call('create_partitioned_topic', topic, partitions)
        namespace = self._namespace_of(topic)
        namespace['partitioned'][topic] = partitions
        for i in range(partitions):
            namespace['topics'][f"{topic}-partition-{i}"] = set()

    def create_partitioned_topic_async(self, topic, partitions):
        future = Future()
        try:
            self.create_partitioned_topic(topic, partitions)
            future.set_result(None)
        except Exception as e:
            future.set_exception(e)
        return future

    def close(self):
        self.closed = True


class FakeMessage:

    def __init__(self, payload: bytes, publish_timestamp_ms: int, message_id=1):
        self._payload = payload
        self._publish_timestamp_ms = publish_timestamp_ms
        self._message_id = message_id

    def data(self):
        return self._payload

    def publish_timestamp(self):
        return self._publish_timestamp_ms

    def message_id(self):
        return self._message_id


class FakeConsumer:
    """Physical consumer standing in for ``pulsar.Consumer``."""

    def __init__(self, topic, subscription_name, listener):
        self.topic = topic
        self.subscription_name = subscription_name
        self.listener = listener
        self.acknowledged = []
        self.ack_error = None
        self.paused = False
        self.closed = False

    def deliver(self, msg):
        self.listener(self, msg)

    def acknowledge(self, msg):
        if self.ack_error is not None:
            raise self.ack_error
        self.acknowledged.append(msg)

    def pause_message_listener(self):
        self.paused = True

    def resume_message_listener(self):
        self.paused = False

    def close(self):
        self.closed = True


class PendingSubscription:

    def __init__(self, topic, subscription_name, listener):
        self.topic = topic
        self.subscription_name = subscription_name
        self.listener = listener
        self.future = Future()
        self.consumer = FakeConsumer(topic, subscription_name, listener)

    def complete(self):
        self.future.set_result(self.consumer)

    def fail(self, exc):
        self.future.set_exception(exc)


class FakeProducer:
    """Producer standing in for ``pulsar.Producer``; acknowledges sends synchronously."""

    def __init__(self, topic, template):
        self.topic = topic
        self.template = template
        self.sent = []
        self.result = pulsar.Result.Ok
        self.flushed = False
        self.closed = False

    def send_async(self, content, callback, partition_key=None):
        self.sent.append((content, partition_key))
        callback(self.result, len(self.sent))

    def flush(self):
        self.flushed = True

    def close(self):
        self.closed = True


class FakeDataPlaneGateway:
    """Data-plane gateway whose subscriptions complete on demand.

    With ``auto_complete`` every subscribe succeeds immediately unless its
    topic is listed in ``subscribe_failures``.
    """

    def __init__(self, auto_complete=True):
        self.auto_complete = auto_complete
        self.subscriptions: List[PendingSubscription] = []
        self.subscribe_failures = {}
        self.producers: List[FakeProducer] = []
        self.producer_failures = {}
        self.closed = False

    def subscribe_async(self, topic, subscription_name, message_listener):
        pending = PendingSubscription(topic, subscription_name, message_listener)
        self.subscriptions.append(pending)
        if self.auto_complete:
            if topic in self.subscribe_failures:
                pending.fail(self.subscribe_failures[topic])
            else:
                pending.complete()
        return pending.future

    def create_producer_async(self, topic, template):
        future = Future()
        if topic in self.producer_failures:
            future.set_exception(self.producer_failures[topic])
        else:
            producer = FakeProducer(topic, dict(template))
            self.producers.append(producer)
            future.set_result(producer)
        return future

    def close(self):
        self.closed = True


class RecordingCallback(ConsumerCallback):

    def __init__(self):
        self.messages = []
        self._lock = threading.Lock()

    def message_received(self, payload: bytes, publish_timestamp_ns: int):
        with self._lock:
            self.messages.append((payload, publish_timestamp_ns))


@pytest.fixture
def admin():
    return FakeAdminGateway()


@pytest.fixture
def data_plane():
    return FakeDataPlaneGateway()


@pytest.fixture
def pulsar_config():
    return PulsarConfig()


@pytest.fixture
def driver(admin, data_plane):
    return PulsarBenchmarkDriver(
        suffix_generator=SequentialSuffixGenerator("run"),
        admin_factory=lambda client_config: admin,
        data_plane_factory=lambda client_config, consumer_config: data_plane,
    )
