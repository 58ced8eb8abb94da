"""Driver contract used by the benchmark harness."""

from .benchmark_driver import BenchmarkDriver, TopicInfo
from .benchmark_producer import BenchmarkProducer
from .benchmark_consumer import BenchmarkConsumer
from .consumer_callback import ConsumerCallback

__all__ = [
    "BenchmarkDriver",
    "TopicInfo",
    "BenchmarkProducer",
    "BenchmarkConsumer",
    "ConsumerCallback",
]
