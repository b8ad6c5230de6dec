"""
kssh/utils/k8s.py

The live-cluster capability used by the reconciler, implemented by running
'kubectl' against a kubeconfig:

  - get_object:    fetch one object as a dict, or None if it does not exist.
  - create_object: create one object; never updates an existing one.
  - list_names:    names of every object of a kind in a namespace.

kubectl reports NotFound / AlreadyExists on stderr as
"Error from server (NotFound): ...". Those two are classified; anything else
is a ClusterError.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from kssh.models.k8s import CLUSTER_SCOPED_KINDS, GenericObject
from kssh.utils.async_command_runner import CommandError, run_command

logger = logging.getLogger(__name__)


class ClusterError(RuntimeError):
    """A cluster call failed for a reason other than NotFound."""


class AlreadyExistsError(ClusterError):
    """Create was rejected because the object already exists."""


def _is_not_found(ex: CommandError) -> bool:
    return "(NotFound)" in ex.stderr


def _is_already_exists(ex: CommandError) -> bool:
    return "(AlreadyExists)" in ex.stderr


class KubectlCluster:
    """
    Cluster access through the kubectl binary.

    Args:
        kubeconfig: Path to the kubeconfig; None uses kubectl's own default.
        context:    kubeconfig context to use; None uses the current context.
        kubectl:    Name or path of the kubectl executable.
    """

    def __init__(
        self,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        kubectl: str = "kubectl",
    ) -> None:
        self.kubeconfig = kubeconfig
        self.context = context
        self.kubectl = kubectl

    def _base_cmd(self) -> List[str]:
        cmd = [self.kubectl]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        if self.context:
            cmd += ["--context", self.context]
        return cmd

    def _scope_args(self, kind: str, namespace: Optional[str]) -> List[str]:
        if kind in CLUSTER_SCOPED_KINDS or not namespace:
            return []
        return ["-n", namespace]

    async def get_object(
        self, kind: str, name: str, namespace: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch one object.

        Returns:
            The object as a dict, or None if the cluster reports NotFound.

        Raises:
            ClusterError: For any other failure (auth, connectivity, bad kind...).
        """
        cmd = (
            self._base_cmd()
            + ["get", kind.lower(), name]
            + self._scope_args(kind, namespace)
            + ["-o", "json"]
        )
        try:
            raw_json = await run_command(cmd, sensitive=False)
        except CommandError as ex:
            if _is_not_found(ex):
                return None
            raise ClusterError(f"failed to get {kind} '{name}': {ex}") from ex

        try:
            parsed: Dict[str, Any] = json.loads(raw_json)
        except json.JSONDecodeError as ex:
            raise ClusterError(
                f"kubectl returned invalid JSON for {kind} '{name}': {ex}"
            ) from ex
        return parsed

    async def create_object(self, obj: GenericObject) -> None:
        """
        Create one object from its manifest.

        Raises:
            AlreadyExistsError: If an object with the same identity exists.
            ClusterError: For any other failure.
        """
        cmd = self._base_cmd() + ["create", "-f", "-", "-o", "name"]
        manifest_json = json.dumps(obj.to_dict(), indent=2)
        try:
            # The manifest may hold private keys, keep it out of error messages.
            await run_command(cmd, sensitive=True, input_data=manifest_json)
        except CommandError as ex:
            if _is_already_exists(ex):
                raise AlreadyExistsError(
                    f"{obj.kind} '{obj.name}' already exists"
                ) from ex
            raise ClusterError(
                f"failed to create {obj.kind} '{obj.name}': {ex}"
            ) from ex
        logger.debug("kubectl created %s '%s'.", obj.kind, obj.name)

    async def list_names(self, kind: str, namespace: Optional[str] = None) -> List[str]:
        """
        Return the names of all objects of `kind` in `namespace`.

        Raises:
            ClusterError: If kubectl fails or returns unexpected output.
        """
        cmd = (
            self._base_cmd()
            + ["get", kind.lower()]
            + self._scope_args(kind, namespace)
            + ["-o", "json"]
        )
        try:
            raw_json = await run_command(cmd, sensitive=False)
            items = json.loads(raw_json).get("items", [])
        except CommandError as ex:
            raise ClusterError(f"failed to list {kind}: {ex}") from ex
        except (json.JSONDecodeError, AttributeError) as ex:
            raise ClusterError(f"kubectl returned invalid list for {kind}: {ex}") from ex

        return [
            item["metadata"]["name"]
            for item in items
            if isinstance(item, dict) and item.get("metadata", {}).get("name")
        ]
