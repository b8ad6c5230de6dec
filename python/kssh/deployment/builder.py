"""
kssh/deployment/builder.py

Builds the desired state of one deployment run: the shared system objects plus
a Deployment, headless Service and Secret per replica. Every replica's Secret
carries its own keypair and the full trust set (all replicas' public keys).
"""

from __future__ import annotations

import base64
import logging
from typing import Callable, List, Optional

from kssh.manifests.assets import ManifestAssets
from kssh.manifests.decoder import decode_manifests
from kssh.manifests.render import TemplateContext, escape_multiline, render_template
from kssh.models.k8s import GenericObject
from kssh.models.settings import DEFAULT_IMAGE, DEFAULT_PORT, check_dns_label
from kssh.models.ssh import SSHKeypair
from kssh.utils.ssh import build_trust_set, generate_ssh_keypair

logger = logging.getLogger(__name__)


def replica_names(name_prefix: str, count: int) -> List[str]:
    """Return ['<prefix>-0', ..., '<prefix>-<count-1>']."""
    return [f"{name_prefix}-{index}" for index in range(count)]


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class DesiredStateBuilder:
    """
    Renders and decodes the full object set for one run.

    Args:
        assets: Bootstrap script and templates to render from.
        image:  Container image of every replica.
        port:   SSH port exposed by every replica.
        keygen: Keypair factory, called once per replica.
    """

    def __init__(
        self,
        assets: ManifestAssets,
        *,
        image: str = DEFAULT_IMAGE,
        port: int = DEFAULT_PORT,
        keygen: Optional[Callable[[], SSHKeypair]] = None,
    ) -> None:
        self.assets = assets
        self.image = image
        self.port = port
        self.keygen = keygen if keygen is not None else generate_ssh_keypair

    def build(
        self, namespace: str, name_prefix: str, replicas: int
    ) -> List[GenericObject]:
        """
        Build system objects followed by each replica's objects in index order.

        Keys are generated for every replica before any replica is rendered, so
        each Secret sees the complete trust set.

        Raises:
            ValueError: If replicas is negative, or namespace or a replica name
                is not a DNS-1123 label.
            KeyGenerationError: If key generation fails.
            TemplateRenderError: If a template is malformed or needs a missing field.
            ManifestDecodeError: If rendered output is not valid YAML.
        """
        if replicas < 0:
            raise ValueError(f"replicas must be >= 0, got {replicas}")
        # Both values are substituted into YAML unquoted.
        check_dns_label(namespace)
        for name in replica_names(name_prefix, replicas):
            check_dns_label(name)

        keypairs = [self.keygen() for _ in range(replicas)]
        authorized_keys = _b64(build_trust_set(keypairs))

        objects = self.build_system_objects(namespace)
        for name, keypair in zip(replica_names(name_prefix, replicas), keypairs):
            objects += self.build_replica_objects(
                namespace, name, keypair, authorized_keys
            )

        logger.info(
            "Built %d objects for %d replica(s) in namespace '%s'.",
            len(objects),
            replicas,
            namespace,
        )
        return objects

    def build_system_objects(self, namespace: str) -> List[GenericObject]:
        context = TemplateContext(
            namespace=namespace,
            bootstrap_config_map_name=self.assets.bootstrap_config_map_name,
            bootstrap_content=escape_multiline(self.assets.bootstrap_script),
        )
        text = render_template(
            self.assets.system_template, context, template_name="system template"
        )
        return [obj.with_namespace(namespace) for obj in decode_manifests(text)]

    def build_replica_objects(
        self,
        namespace: str,
        name: str,
        keypair: SSHKeypair,
        authorized_keys: str,
    ) -> List[GenericObject]:
        """
        Render one replica's objects.

        Args:
            authorized_keys: The base64-encoded trust set shared by all replicas.
        """
        context = TemplateContext(
            namespace=namespace,
            name=name,
            image=self.image,
            port=self.port,
            authorized_keys=authorized_keys,
            ssh_private_key=_b64(keypair.private_key),
            ssh_public_key=_b64(keypair.public_key),
            bootstrap_config_map_name=self.assets.bootstrap_config_map_name,
        )
        text = render_template(
            self.assets.replica_template,
            context,
            template_name=f"replica template for '{name}'",
        )
        return [obj.with_namespace(namespace) for obj in decode_manifests(text)]
