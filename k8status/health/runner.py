"""Runner: executes the configured checkers in order and summarizes the cluster health."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from k8status.config import Settings
from k8status.context import CheckContext
from k8status.kube.client import KubeClient
from k8status.kube.config import load_connection

from .composite import CompositeChecker
from .httpcheck import (
    EtcdConfig,
    ResponseValidator,
    new_http_healthz_checker,
    new_http_healthz_checker_with_transport,
)
from .kube import component_server_health, kube_cluster_config
from .nodes import node_status_health, nodes_status_health
from .probe import NO_ERROR_DETAIL, FinalProbe, ProbeStatus, SingleFinalProbe, new_probe_from_err
from .reporter import Checker, Checkers, Probes

logger = logging.getLogger(__name__)

ETCD_CHECKER_ID = "etcd-healthz"


class Runner(Checkers):
    """Stores the configured checkers and runs them one after another.

    ``config_checker_name`` identifies the checker whose probe is reported in
    the summary's ``config`` slot instead of ``errors`` / ``oks``.
    """

    def __init__(self, config_checker_name: str, checkers: Iterable[Checker] = ()) -> None:
        super().__init__(checkers)
        self.config_checker_name = config_checker_name

    def run(self, ctx: CheckContext | None = None) -> FinalProbe:
        """Run all checks successively and report the general cluster status."""
        ctx = ctx or CheckContext.background()
        probes = Probes()

        for checker in self.checkers:
            logger.info("running checker %s", checker.name())
            try:
                checker.check(ctx, probes)
            except Exception as e:
                logger.exception("Checker %s raised instead of reporting", checker.name())
                probes.add(new_probe_from_err(checker.name(), NO_ERROR_DETAIL, f"checker raised: {e}"))

        return self.final_health(probes)

    def final_health(self, probes: Probes) -> FinalProbe:
        """Reduce the probes of one run into a single summary."""
        final = FinalProbe(status=ProbeStatus.RUNNING)

        for probe in probes:
            if probe.status == ProbeStatus.RUNNING:
                entry = SingleFinalProbe(description=f"Check {probe.checker}: OK", data=probe.checker_data)
                target = final.oks
            else:
                final.status = ProbeStatus.FAILED
                entry = SingleFinalProbe(description=f"Check {probe.checker}: {probe.error}", data=probe.checker_data)
                target = final.errors

            if probe.checker == self.config_checker_name:
                final.config = entry  # last one wins
            else:
                target.append(entry)

        logger.info(
            "cluster health: %s (%d ok, %d errors)",
            final.status.value, len(final.oks), len(final.errors),
        )
        logger.debug("cluster health report: %r", final)
        return final


def new_runner_with_settings(cfg: Settings, client: KubeClient | None = None) -> Runner:
    """Runner with the checks configured by ``cfg``.

    Raises KubeConfigError when no cluster connection can be set up and
    TransportConfigError when the etcd TLS material is unusable.
    """
    if client is None:
        client = KubeClient(load_connection(cfg.kubeconfig))

    runner = Runner(config_checker_name=cfg.config_checker_config_name)
    runner.add_checker(kube_cluster_config(client, cfg.config_checker_namespace, cfg.config_checker_config_name))
    for component in cfg.kube_components:
        runner.add_checker(component_server_health(client, component))
    runner.add_checker(nodes_status_health(client, cfg.kube_nodes_ready_threshold))
    if cfg.node_name:
        runner.add_checker(node_status_health(client, cfg.node_name))

    for name, url in cfg.healthz_endpoints.items():
        runner.add_checker(new_http_healthz_checker(name, url, ResponseValidator.KUBE_HEALTHZ))

    if cfg.etcd_endpoints:
        etcd = EtcdConfig(
            endpoints=list(cfg.etcd_endpoints),
            ca_file=cfg.etcd_ca_file,
            cert_file=cfg.etcd_cert_file,
            key_file=cfg.etcd_key_file,
            insecure_skip_verify=cfg.etcd_insecure_skip_verify,
        )
        runner.add_checker(etcd_endpoints_health(etcd))

    logger.info("Runner configured with %d checkers", len(runner))
    return runner


def etcd_endpoints_health(etcd: EtcdConfig) -> CompositeChecker:
    """One etcd health check per endpoint, grouped under a single name."""
    transport = etcd.new_http_transport()
    checkers = [
        new_http_healthz_checker_with_transport(
            f"{ETCD_CHECKER_ID} {endpoint}",
            f"{endpoint.rstrip('/')}/health",
            transport,
            ResponseValidator.ETCD_HEALTH,
        )
        for endpoint in etcd.endpoints
    ]
    return CompositeChecker(ETCD_CHECKER_ID, checkers)
