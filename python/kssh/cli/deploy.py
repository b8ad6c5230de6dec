"""
kssh/cli/deploy.py

CLI for provisioning a fleet of SSH pods:

  - `deploy` subcommand -> build the desired state, then `apply_objects`
  - `render` subcommand -> build the desired state and print it as YAML
  - `status` subcommand -> list which replica objects exist in the namespace

Any fatal error is printed to stderr and exits with status 1. Objects created
before a failure stay in the cluster; re-running `deploy` creates only what is
missing.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
from typing import List

import yaml
from pydantic import ValidationError

from kssh.deployment.builder import DesiredStateBuilder
from kssh.deployment.reconcile import ReconcileError, apply_objects
from kssh.manifests import (
    ManifestAssets,
    ManifestDecodeError,
    TemplateRenderError,
    load_assets_from_dir,
    load_default_assets,
)
from kssh.models.k8s import GenericObject, MissingFieldError
from kssh.models.settings import DEFAULT_IMAGE, DEFAULT_PORT, DeploySettings
from kssh.utils.k8s import ClusterError, KubectlCluster
from kssh.utils.ssh import KeyGenerationError

logger = logging.getLogger(__name__)

REPLICA_KINDS = ["Deployment", "Service", "Secret"]


async def _load_assets(settings: DeploySettings) -> ManifestAssets:
    if settings.template_dir:
        return await load_assets_from_dir(settings.template_dir)
    return load_default_assets()


async def _build(settings: DeploySettings) -> List[GenericObject]:
    assets = await _load_assets(settings)
    builder = DesiredStateBuilder(assets, image=settings.image, port=settings.port)
    return builder.build(settings.namespace, settings.name_prefix, settings.replicas)


async def run_deploy(settings: DeploySettings) -> None:
    """Build every object for the run, then get-or-create them in order."""
    objects = await _build(settings)
    cluster = KubectlCluster(kubeconfig=settings.kubeconfig, context=settings.context)
    report = await apply_objects(cluster, objects, settings.namespace)
    print(
        f"Namespace '{settings.namespace}': {len(report.created)} object(s) created, "
        f"{len(report.skipped)} already present."
    )


async def run_render(settings: DeploySettings) -> None:
    """Print the desired state as multi-document YAML, without touching the cluster."""
    objects = await _build(settings)
    sys.stdout.write(
        yaml.safe_dump_all(
            [obj.to_dict() for obj in objects], sort_keys=False, explicit_start=True
        )
    )


async def run_status(settings: DeploySettings) -> None:
    """Report, per kind, which '<prefix>-<index>' objects exist in the namespace."""
    cluster = KubectlCluster(kubeconfig=settings.kubeconfig, context=settings.context)
    pattern = re.compile(rf"^{re.escape(settings.name_prefix)}-\d+$")
    for kind in REPLICA_KINDS:
        names = [
            n
            for n in await cluster.list_names(kind, settings.namespace)
            if pattern.match(n)
        ]
        print(f"{kind}: {', '.join(sorted(names)) if names else '(none)'}")


def _build_settings(args: argparse.Namespace) -> DeploySettings:
    return DeploySettings(
        namespace=args.namespace,
        name_prefix=args.name_prefix,
        replicas=args.replicas,
        kubeconfig=args.kubeconfig,
        context=args.context,
        image=args.image,
        port=args.port,
        template_dir=args.template_dir,
    )


def _add_common_args(subparser: argparse.ArgumentParser) -> None:
    defaults = DeploySettings()
    subparser.add_argument(
        "--namespace", default=defaults.namespace, help="Target namespace."
    )
    subparser.add_argument(
        "--name-prefix",
        default=defaults.name_prefix,
        help="Prefix of replica names; replicas are '<prefix>-<index>'.",
    )
    subparser.add_argument(
        "--replicas",
        type=int,
        default=defaults.replicas,
        help=f"Number of SSH pods (default: {defaults.replicas}).",
    )
    subparser.add_argument(
        "--kubeconfig",
        default=defaults.kubeconfig,
        help="Path to the kubeconfig (default: ~/.kube/config).",
    )
    subparser.add_argument("--context", default=None, help="kubeconfig context.")
    subparser.add_argument(
        "--image", default=DEFAULT_IMAGE, help="SSH server container image."
    )
    subparser.add_argument(
        "--port", type=int, default=DEFAULT_PORT, help="SSH port (default: 22)."
    )
    subparser.add_argument(
        "--template-dir",
        default=None,
        help="Directory with bootstrap.sh and the two .yaml.j2 templates.",
    )
    subparser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )


def main() -> None:
    """
    CLI entry point. Converts every fatal error into a message on stderr and
    exit status 1.
    """
    parser = argparse.ArgumentParser(
        prog="kssh.cli.deploy",
        description="Provision SSH-accessible pods that all trust each other.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser(
        "deploy", help="Create every missing object; existing ones are left alone."
    )
    _add_common_args(deploy_parser)
    deploy_parser.set_defaults(func=run_deploy)

    render_parser = subparsers.add_parser(
        "render", help="Print the manifests as YAML without contacting the cluster."
    )
    _add_common_args(render_parser)
    render_parser.set_defaults(func=run_render)

    status_parser = subparsers.add_parser(
        "status", help="List the replica objects present in the namespace."
    )
    _add_common_args(status_parser)
    status_parser.set_defaults(func=run_status)

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = _build_settings(args)
        asyncio.run(args.func(settings))
    except ValidationError as ex:
        print(f"Error: invalid arguments: {ex}", file=sys.stderr)
        sys.exit(1)
    except (
        KeyGenerationError,
        TemplateRenderError,
        ManifestDecodeError,
        MissingFieldError,
        ReconcileError,
        ClusterError,
        OSError,
    ) as ex:
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
