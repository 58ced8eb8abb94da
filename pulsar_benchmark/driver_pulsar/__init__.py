"""Apache Pulsar driver for the benchmark framework."""

from .pulsar_benchmark_driver import PulsarBenchmarkDriver
from .pulsar_benchmark_producer import PulsarBenchmarkProducer
from .pulsar_benchmark_consumer import PulsarBenchmarkConsumer
from .config import PulsarConfig, load_config
from .errors import SetupError, SubscribeFailure, ProduceFailure

__all__ = [
    "PulsarBenchmarkDriver",
    "PulsarBenchmarkProducer",
    "PulsarBenchmarkConsumer",
    "PulsarConfig",
    "load_config",
    "SetupError",
    "SubscribeFailure",
    "ProduceFailure",
]
