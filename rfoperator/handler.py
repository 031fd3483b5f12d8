"""Reconciliation of a RedisFailover: resource creation, checks and healing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Sequence

from rfoperator.config import Config
from rfoperator.log import DUMMY as DUMMY_LOGGER
from rfoperator.metrics import DUMMY as DUMMY_RECORDER
from rfoperator.types import RF_KIND, RedisFailover, version_kind

OPERATOR_NAME = "redis-operator"
RF_LABEL_MANAGED_BY_KEY = "app.kubernetes.io/managed-by"
RF_LABEL_NAME_KEY = "redisfailovers.databases.spotahome.com/name"

DEFAULT_LABELS: dict[str, str] = {RF_LABEL_MANAGED_BY_KEY: OPERATOR_NAME}

TIME_TO_PREPARE = timedelta(minutes=2)


class HandlerError(RuntimeError):
    """Raised when a RedisFailover cannot be brought to a healthy state."""


@dataclass(frozen=True)
class OwnerReference:
    """Ownership of a derived object by its RedisFailover."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True


def _merge_labels(*label_sets: dict[str, str]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for labels in label_sets:
        merged.update(labels or {})
    return merged


class RedisFailoverHandler:
    """Creates the resources a RedisFailover needs and keeps it healthy.

    ``rf_service`` ensures kubernetes resources exist, ``rf_checker`` inspects
    the running cluster (its ``check_*`` methods raise when a check fails) and
    ``rf_healer`` repairs it.
    """

    def __init__(
        self,
        config: Config,
        rf_service: Any,
        rf_checker: Any,
        rf_healer: Any,
        k8s_service: Any = None,
        metrics_client: Any = None,
        logger: Any = None,
    ) -> None:
        self.config = config
        self.rf_service = rf_service
        self.rf_checker = rf_checker
        self.rf_healer = rf_healer
        self.k8s_service = k8s_service
        self.metrics_client = metrics_client if metrics_client is not None else DUMMY_RECORDER
        self.logger = logger if logger is not None else DUMMY_LOGGER

    # -- entry point -------------------------------------------------------

    def handle(self, obj: Any) -> None:
        """Bring the received RedisFailover to its expected state."""
        if not isinstance(obj, RedisFailover):
            raise HandlerError("can't handle the received object: not a redisfailover")
        rf = obj
        try:
            rf.validate()
            owner_refs = self.create_owner_references(rf)
            labels = self.get_labels(rf)
            self.ensure(rf, labels, owner_refs)
            self.check_and_heal(rf)
        except Exception:
            self.metrics_client.set_cluster_error(rf.namespace, rf.name)
            raise
        self.metrics_client.set_cluster_ok(rf.namespace, rf.name)

    def get_labels(self, rf: RedisFailover) -> dict[str, str]:
        """Merge the operator labels, the name label and the whitelisted custom labels."""
        dynamic = {RF_LABEL_NAME_KEY: rf.name}
        if rf.spec.label_whitelist:
            filtered: dict[str, str] = {}
            for pattern in rf.spec.label_whitelist:
                try:
                    compiled = re.compile(pattern)
                except re.error:
                    self.logger.error(
                        "Unable to compile label whitelist regex '%s', ignoring it.", pattern
                    )
                    continue
                filtered.update(
                    (key, value) for key, value in rf.labels.items() if compiled.search(key)
                )
        else:
            filtered = dict(rf.labels)
        return _merge_labels(DEFAULT_LABELS, dynamic, filtered)

    def create_owner_references(self, rf: RedisFailover) -> list[OwnerReference]:
        gvk = version_kind(RF_KIND)
        return [
            OwnerReference(
                api_version=gvk.api_version,
                kind=gvk.kind,
                name=rf.name,
                uid=rf.metadata.uid,
            )
        ]

    # -- ensuring resources ------------------------------------------------

    def ensure(
        self,
        rf: RedisFailover,
        labels: dict[str, str],
        owner_refs: Sequence[OwnerReference],
    ) -> None:
        """Create or update every resource the RedisFailover owns."""
        service = self.rf_service
        if rf.spec.redis.exporter.enabled:
            service.ensure_redis_service(rf, labels, owner_refs)
        else:
            service.ensure_not_present_redis_service(rf)

        sentinels_allowed = rf.sentinels_allowed()
        if sentinels_allowed:
            service.ensure_sentinel_service(rf, labels, owner_refs)
            service.ensure_sentinel_config_map(rf, labels, owner_refs)

        service.ensure_redis_shutdown_config_map(rf, labels, owner_refs)
        service.ensure_redis_readiness_config_map(rf, labels, owner_refs)
        service.ensure_redis_config_map(rf, labels, owner_refs)
        service.ensure_redis_statefulset(rf, labels, owner_refs)

        if sentinels_allowed:
            service.ensure_sentinel_deployment(rf, labels, owner_refs)

    # -- checking and healing ----------------------------------------------

    def update_redises_pods(self, rf: RedisFailover) -> None:
        """Delete one pod whose revision differs from the statefulset's, if all are synced."""
        checker = self.rf_checker
        redises = checker.get_redises_ips(rf)

        master_ip = ""
        if not rf.bootstrapping():
            try:
                master_ip = checker.get_master_ip(rf)
            except Exception:
                master_ip = ""

        # No updates while nodes are syncing, not yet connected, etc.
        for ip in redises:
            if ip != master_ip and not checker.check_redis_slaves_ready(ip, rf):
                return

        update_revision = checker.get_stateful_set_update_revision(rf)

        for pod in checker.get_redises_slaves_pods(rf):
            if checker.get_redis_revision_hash(pod, rf) != update_revision:
                # The replacement is checked on the next round.
                self.rf_healer.delete_pod(pod, rf)
                return

        if not rf.bootstrapping():
            master = checker.get_redises_master_pod(rf)
            if checker.get_redis_revision_hash(master, rf) != update_revision:
                self.rf_healer.delete_pod(master, rf)

    def check_and_heal(self, rf: RedisFailover) -> None:
        """Verify the failover is healthy and repair what is not."""
        if rf.bootstrapping():
            self._check_and_heal_bootstrap_mode(rf)
            return

        checker = self.rf_checker
        healer = self.rf_healer

        if not self._passes(checker.check_redis_number, rf):
            self.logger.debug(
                "Number of redis mismatch, this could be for a change on the statefulset"
            )
            return
        if not self._passes(checker.check_sentinel_number, rf):
            self.logger.debug(
                "Number of sentinel mismatch, this could be for a change on the deployment"
            )
            return

        masters = checker.get_number_masters(rf)
        if masters == 0:
            redises = checker.get_redises_ips(rf)
            if len(redises) == 1:
                healer.make_master(redises[0], rf)
            else:
                min_time = checker.get_minimum_redis_pod_time(rf)
                if min_time > TIME_TO_PREPARE:
                    self.logger.debug(
                        "time %.f more than expected. Not even one master, fixing...",
                        round(min_time.total_seconds()),
                    )
                    healer.set_oldest_as_master(rf)
                else:
                    self.logger.debug("No master found, wait until failover")
                    return
        elif masters != 1:
            raise HandlerError("More than one master, fix manually")

        master = checker.get_master_ip(rf)
        if not self._passes(checker.check_all_slaves_from_master, master, rf):
            self.logger.debug("Not all slaves have the same master")
            healer.set_master_on_all(master, rf)

        self._apply_redis_custom_config(rf)
        self.update_redises_pods(rf)

        sentinels = checker.get_sentinels_ips(rf)
        for sip in sentinels:
            if not self._passes(checker.check_sentinel_monitor, sip, master):
                self.logger.debug("Sentinel is not monitoring the correct master")
                healer.new_sentinel_monitor(sip, master, rf)
        self._check_and_heal_sentinels(rf, sentinels)

    def _check_and_heal_bootstrap_mode(self, rf: RedisFailover) -> None:
        checker = self.rf_checker
        healer = self.rf_healer

        if not self._passes(checker.check_redis_number, rf):
            self.logger.debug(
                "Number of redis mismatch, this could be for a change on the statefulset"
            )
            return

        self.update_redises_pods(rf)
        self._apply_redis_custom_config(rf)

        node = rf.spec.bootstrap_node
        healer.set_external_master_on_all(node.host, node.port, rf)

        if not rf.sentinels_allowed():
            return

        if not self._passes(checker.check_sentinel_number, rf):
            self.logger.debug(
                "Number of sentinel mismatch, this could be for a change on the deployment"
            )
            return

        sentinels = checker.get_sentinels_ips(rf)
        for sip in sentinels:
            if not self._passes(checker.check_sentinel_monitor, sip, node.host, node.port):
                self.logger.debug("Sentinel is not monitoring the correct master")
                healer.new_sentinel_monitor_with_port(sip, node.host, node.port, rf)
        self._check_and_heal_sentinels(rf, sentinels)

    def _apply_redis_custom_config(self, rf: RedisFailover) -> None:
        for ip in self.rf_checker.get_redises_ips(rf):
            self.rf_healer.set_redis_custom_config(ip, rf)

    def _check_and_heal_sentinels(self, rf: RedisFailover, sentinels: Sequence[str]) -> None:
        checker = self.rf_checker
        healer = self.rf_healer
        for sip in sentinels:
            if not self._passes(checker.check_sentinel_number_in_memory, sip, rf):
                self.logger.debug("Sentinel has more sentinel in memory than spected")
                healer.restore_sentinel(sip)
        for sip in sentinels:
            if not self._passes(checker.check_sentinel_slaves_number_in_memory, sip, rf):
                self.logger.debug("Sentinel has more slaves in memory than spected")
                healer.restore_sentinel(sip)
        for sip in sentinels:
            healer.set_sentinel_custom_config(sip, rf)

    @staticmethod
    def _passes(check: Any, *args: Any) -> bool:
        """Run a check that raises on failure; report whether it passed."""
        try:
            check(*args)
        except Exception:
            return False
        return True