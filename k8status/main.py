"""Entry point: `k8status` console script."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from k8status.api.server import serve
from k8status.config import Settings, settings
from k8status.context import CheckContext
from k8status.health.httpcheck import TransportConfigError
from k8status.health.probe import ProbeStatus
from k8status.health.runner import Runner, new_runner_with_settings
from k8status.kube.config import KubeConfigError

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def setup_logging(cfg: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.effective_log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def build_runner(cfg: Settings) -> Runner:
    try:
        return new_runner_with_settings(cfg)
    except (KubeConfigError, TransportConfigError) as e:
        logger.critical("can't create health runner: %s", e)
        sys.exit(1)


def run_server(cfg: Settings) -> None:
    """Start the health API server."""
    runner = build_runner(cfg)
    console.print(
        Panel.fit(
            f"[bold]k8status[/bold]\n"
            f"Bind:     {cfg.http_host}:{cfg.http_port}\n"
            f"Checkers: {', '.join(c.name() for c in runner)}\n"
            f"Config:   {cfg.config_checker_namespace}/{cfg.config_checker_config_name}",
            title="k8status serve",
            border_style="green",
        )
    )
    serve(runner, cfg)


def run_check(cfg: Settings) -> int:
    """Run every check once and print the report as JSON."""
    runner = build_runner(cfg)
    final = runner.run(CheckContext.background().with_timeout(cfg.check_timeout))
    print(json.dumps(final.to_dict(), indent=2))

    style = "bold green" if final.status == ProbeStatus.RUNNING else "bold red"
    console.print(f"[{style}]cluster status: {final.status.value}[/{style}]")
    return 0 if final.status == ProbeStatus.RUNNING else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Kubernetes control plane health")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Serve /healthz and /readyz")
    sub.add_parser("check", help="Run all checks once and print the report")

    args = parser.parse_args()
    setup_logging(settings)

    if args.command == "serve":
        run_server(settings)
    elif args.command == "check":
        sys.exit(run_check(settings))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
