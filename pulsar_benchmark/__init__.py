"""Apache Pulsar driver for the OpenMessaging benchmark framework."""

__version__ = "0.1.0"
