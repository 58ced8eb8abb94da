"""Test driver configuration loading."""

import pytest
import tempfile
import yaml
from pathlib import Path

from pulsar_benchmark.driver_pulsar.config import (
    PulsarConfig,
    ClientConfig,
    PersistenceConfig,
    AuthenticationConfig,
    ConsumerConfig,
    load_config,
    config_from_dict,
    SERVICE_URL_ENV,
    HTTP_URL_ENV,
)


class TestPulsarConfig:
    """Test the driver configuration model."""

    def test_defaults(self):
        """Test default configuration values."""
        config = PulsarConfig()

        assert config.client.service_url == "pulsar://localhost:6650"
        assert config.client.http_url == "http://localhost:8080"
        assert config.client.namespace_prefix == "benchmark/ns"
        assert config.client.tenant == "benchmark"
        assert config.client.topic_type == "persistent"
        assert config.producer.batching_enabled is True
        assert config.consumer.subscription_type == "Failover"
        assert config.consumer.fire_and_forget_ack is True
        assert config.consumer.wait_for_all_subscriptions is False
        assert config.cleanup.enabled is True
        assert config.cleanup.delete_namespaces is False

    def test_from_dict_with_aliases(self):
        """Test configuration from a camelCase dictionary as found in driver YAML files."""
        data = {
            "name": "Pulsar",
            "driverClass": "pulsar_benchmark.driver_pulsar.PulsarBenchmarkDriver",
            "client": {
                "serviceUrl": "pulsar+ssl://broker:6651",
                "httpUrl": "https://broker:8443",
                "namespacePrefix": "perf/ns",
                "clusterName": "us-east",
                "tlsAllowInsecureConnection": True,
                "persistence": {
                    "ensembleSize": 3,
                    "writeQuorum": 2,
                    "ackQuorum": 2,
                    "deduplicationEnabled": True,
                },
            },
            "producer": {"batchingMaxPublishDelayMs": 5, "pendingQueueSize": 200},
            "consumer": {"receiverQueueSize": 5000, "waitForAllSubscriptions": True},
        }

        config = PulsarConfig(**data)
        assert config.client.tenant == "perf"
        assert config.client.cluster_name == "us-east"
        assert config.client.use_tls
        assert config.client.admin_uses_tls
        assert config.client.persistence.write_quorum == 2
        assert config.client.persistence.deduplication_enabled is True
        assert config.producer.batching_max_publish_delay_ms == 5
        assert config.producer.pending_queue_size == 200
        assert config.consumer.receiver_queue_size == 5000
        assert config.consumer.wait_for_all_subscriptions is True

    def test_config_is_frozen(self):
        """Test configuration cannot be modified after loading."""
        config = PulsarConfig()
        with pytest.raises(Exception):
            config.client.service_url = "pulsar://other:6650"

    def test_namespace_prefix_requires_tenant(self):
        """Test namespace prefix validation."""
        with pytest.raises(ValueError):
            ClientConfig(namespacePrefix="no-tenant")

    def test_topic_type_validation(self):
        """Test topic type validation."""
        assert ClientConfig(topicType="non-persistent").topic_type == "non-persistent"
        with pytest.raises(ValueError):
            ClientConfig(topicType="transient")

    def test_quorum_validation(self):
        """Test ack quorum <= write quorum <= ensemble size."""
        with pytest.raises(ValueError):
            PersistenceConfig(ensembleSize=2, writeQuorum=3, ackQuorum=2)
        with pytest.raises(ValueError):
            PersistenceConfig(ensembleSize=3, writeQuorum=2, ackQuorum=3)
        assert PersistenceConfig(ensembleSize=1, writeQuorum=1, ackQuorum=1).ack_quorum == 1

    def test_subscription_type_validation(self):
        """Test subscription type validation."""
        assert ConsumerConfig(subscriptionType="Shared").subscription_type == "Shared"
        with pytest.raises(ValueError):
            ConsumerConfig(subscriptionType="Broadcast")

    def test_to_json_masks_credentials(self):
        """Test credentials never appear in the logged configuration."""
        config = PulsarConfig(client={
            "authentication": {
                "plugin": "org.apache.pulsar.client.impl.auth.AuthenticationToken",
                "data": "token:secret-jwt",
            }
        })
        dumped = config.to_json()
        assert "secret-jwt" not in dumped
        assert "AuthenticationToken" in dumped


class TestAuthenticationConfig:
    """Test authentication token resolution."""

    def test_disabled_without_plugin(self):
        auth = AuthenticationConfig()
        assert not auth.enabled
        assert auth.token() is None

    def test_inline_token(self):
        auth = AuthenticationConfig(plugin="token", data="token:abc")
        assert auth.is_token
        assert auth.token() == "abc"

    def test_token_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            token_file = Path(temp_dir) / "token.txt"
            token_file.write_text("from-file\n")
            auth = AuthenticationConfig(
                plugin="org.apache.pulsar.client.impl.auth.AuthenticationToken",
                data=f"file://{token_file}",
            )
            assert auth.token() == "from-file"

    def test_tls_cert_files(self):
        auth = AuthenticationConfig(
            plugin="org.apache.pulsar.client.impl.auth.AuthenticationTls",
            data="tlsCertFile:/certs/client.pem,tlsKeyFile:/certs/client.key",
        )
        assert auth.is_tls
        assert not auth.is_token
        assert auth.tls_cert_files() == ("/certs/client.pem", "/certs/client.key")

    def test_oauth2_plugin(self):
        auth = AuthenticationConfig(
            plugin="org.apache.pulsar.client.impl.auth.oauth2.AuthenticationOAuth2",
            data='{"issuer_url": "https://auth.example.com"}',
        )
        assert auth.is_oauth2
        assert not auth.is_tls


class TestLoadConfig:
    """Test loading configuration files."""

    def test_load_yaml(self):
        """Test loading a driver YAML file."""
        data = {
            "name": "Pulsar",
            "client": {"serviceUrl": "pulsar://pulsar:6650", "namespacePrefix": "bench/ns"},
            "consumer": {"fireAndForgetAck": False},
        }
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml.dump(data, f)
            temp_path = f.name

        try:
            config = load_config(temp_path)
            assert config.client.service_url == "pulsar://pulsar:6650"
            assert config.client.tenant == "bench"
            assert config.consumer.fire_and_forget_ack is False
        finally:
            Path(temp_path).unlink()

    def test_load_example_config(self):
        """Test the shipped example configuration is valid."""
        example = Path(__file__).parent.parent / "examples" / "pulsar-driver.yaml"
        config = load_config(example)
        assert config.client.persistence.ensemble_size == 1
        assert not config.client.authentication.enabled

    def test_environment_overrides(self, monkeypatch):
        """Test service URLs can be overridden from the environment."""
        monkeypatch.setenv(SERVICE_URL_ENV, "pulsar://override:6650")
        monkeypatch.setenv(HTTP_URL_ENV, "http://override:8080")

        config = config_from_dict({"client": {"serviceUrl": "pulsar://file:6650"}})
        assert config.client.service_url == "pulsar://override:6650"
        assert config.client.http_url == "http://override:8080"
