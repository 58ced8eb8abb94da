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

from typing import Optional


class PulsarDriverError(Exception):
    """Base class for errors raised by the Pulsar driver."""


class SetupError(PulsarDriverError):
    """Provisioning failed; the driver cannot be used."""


class ProvisionConflict(PulsarDriverError):
    """A resource already exists because another worker created it first."""


class AdminApiError(PulsarDriverError):
    """An admin REST call failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ConflictError(AdminApiError, ProvisionConflict):
    """The admin API answered 409 Conflict."""


class NotFoundError(AdminApiError):
    """The admin API answered 404 Not Found."""


class DiscoveryFailure(PulsarDriverError):
    """Partition metadata of a topic could not be fetched."""

    def __init__(self, topic: str, cause: BaseException):
        super().__init__(f"Failed to discover partitions of {topic}: {cause}")
        self.topic = topic
        self.cause = cause


class SubscribeFailure(PulsarDriverError):
    """A physical consumer could not subscribe."""

    def __init__(self, topic: str, subscription_name: str, cause: BaseException):
        super().__init__(f"Failed to subscribe {subscription_name} on {topic}: {cause}")
        self.topic = topic
        self.subscription_name = subscription_name


class ProduceFailure(PulsarDriverError):
    """A producer could not be created or a message could not be published."""

    def __init__(self, topic: str, reason):
        super().__init__(f"Produce failure on {topic}: {reason}")
        self.topic = topic
        self.reason = reason


class CleanupFailure(PulsarDriverError):
    """A step of a cleanup sweep failed. Recorded, never raised to the harness."""

    def __init__(self, operation: str, target: str, cause: BaseException):
        super().__init__(f"{operation} {target} failed: {cause}")
        self.operation = operation
        self.target = target
        self.cause = cause
