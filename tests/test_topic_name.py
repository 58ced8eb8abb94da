"""Test topic name parsing."""

import pytest

from pulsar_benchmark.driver_pulsar.topic_name import TopicName, partition_topic


class TestTopicName:
    """Test fully qualified topic names."""

    def test_parse_full_name(self):
        name = TopicName.parse("persistent://benchmark/ns-abc/test-0")

        assert name.domain == "persistent"
        assert name.tenant == "benchmark"
        assert name.namespace == "ns-abc"
        assert name.local_name == "test-0"
        assert name.namespace_name == "benchmark/ns-abc"
        assert str(name) == "persistent://benchmark/ns-abc/test-0"

    def test_parse_short_name(self):
        name = TopicName.parse("orders")
        assert str(name) == "persistent://public/default/orders"

    def test_parse_without_domain(self):
        name = TopicName.parse("benchmark/ns/orders")
        assert name.domain == "persistent"
        assert name.namespace_name == "benchmark/ns"

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            TopicName.parse("persistent://benchmark/orders")

    def test_rest_path_quotes_local_name(self):
        name = TopicName.parse("non-persistent://benchmark/ns/a b")
        assert name.rest_path == "non-persistent/benchmark/ns/a%20b"

    def test_partition(self):
        name = TopicName.parse("persistent://benchmark/ns/orders")
        assert str(name.partition(3)) == "persistent://benchmark/ns/orders-partition-3"
        assert partition_topic("orders", 0) == "orders-partition-0"
