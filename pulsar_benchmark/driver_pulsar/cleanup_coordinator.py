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

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from pulsar_benchmark.utils.logging import LoggerMixin
from .admin_gateway import PulsarAdminGateway
from .errors import CleanupFailure


@dataclass
class CleanupReport:
    """What one sweep saw, deleted and failed to do."""
    namespaces: List[str] = field(default_factory=list)
    topics_deleted: List[str] = field(default_factory=list)
    subscriptions_deleted: int = 0
    namespaces_deleted: List[str] = field(default_factory=list)
    failures: List[CleanupFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class CleanupCoordinator(LoggerMixin):
    """
    Force-deletes every subscription and topic under the benchmark tenant.

    Sweeps are best-effort: a failing call is recorded in the report and
    logged, and the sweep moves on to the next item.
    """

    def __init__(self, admin: PulsarAdminGateway, tenant: str, delete_namespaces: bool = False):
        super().__init__()
        self.admin = admin
        self.tenant = tenant
        self.delete_namespaces = delete_namespaces

    def sweep(self, preserve: Iterable[str] = ()) -> CleanupReport:
        """
        Run one sweep.

        :param preserve: namespaces that keep existing even when namespace
            deletion is enabled; their topics are still deleted
        """
        preserve = set(preserve)
        report = CleanupReport()
        self.logger.info("Starting to delete all retained topics and namespaces ...")

        _, namespaces = self._attempt(report, "list namespaces of", self.tenant,
                                      lambda: self.admin.list_namespaces(self.tenant))
        for namespace in namespaces or []:
            report.namespaces.append(namespace)
            self._sweep_namespace(report, namespace)
            if self.delete_namespaces and namespace not in preserve:
                self._drop_namespace(report, namespace)

        self.logger.info(
            f"Ending delete all retained topics and namespaces: "
            f"{len(report.topics_deleted)} topics, {report.subscriptions_deleted} subscriptions, "
            f"{len(report.namespaces_deleted)} namespaces deleted, {len(report.failures)} failures")
        return report

    def _sweep_namespace(self, report: CleanupReport, namespace: str):
        _, topics = self._attempt(report, "list topics of", namespace,
                                  lambda: self.admin.list_topics(namespace))
        for topic in topics or []:
            _, subscriptions = self._attempt(report, "list subscriptions of", topic,
                                             lambda: self.admin.list_subscriptions(topic))
            for subscription in subscriptions or []:
                deleted, _ = self._attempt(
                    report, "delete subscription", f"{topic}/{subscription}",
                    lambda: self.admin.delete_subscription(topic, subscription, force=True))
                if deleted:
                    report.subscriptions_deleted += 1

            deleted, _ = self._attempt(report, "delete topic", topic,
                                       lambda: self.admin.delete_topic(topic, force=True))
            if deleted:
                report.topics_deleted.append(topic)

    def _drop_namespace(self, report: CleanupReport, namespace: str):
        _, partitioned = self._attempt(report, "list partitioned topics of", namespace,
                                       lambda: self.admin.list_partitioned_topics(namespace))
        for topic in partitioned or []:
            self._attempt(report, "delete partitioned topic", topic,
                          lambda: self.admin.delete_partitioned_topic(topic, force=True))

        deleted, _ = self._attempt(report, "delete namespace", namespace,
                                   lambda: self.admin.delete_namespace(namespace, force=True))
        if deleted:
            report.namespaces_deleted.append(namespace)

    def _attempt(self, report: CleanupReport, operation: str, target: str,
                 action: Callable) -> Tuple[bool, Optional[object]]:
        try:
            return True, action()
        except Exception as e:
            failure = CleanupFailure(operation, target, e)
            report.failures.append(failure)
            self.logger.error(f"Cleanup step failed: {failure}")
            return False, None
