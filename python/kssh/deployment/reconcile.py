"""
kssh/deployment/reconcile.py

Get-or-create reconciliation of a desired object list against a live cluster.

Per object: get it; if it exists, skip it untouched; if not, create it. Any
other cluster error stops the run immediately. Nothing is rolled back, so a
failed run leaves the objects created so far in place, and re-running is the
recovery path.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel, Field

from kssh.models.k8s import (
    GenericObject,
    MissingFieldError,
    ObjectRef,
    namespace_object,
)
from kssh.utils.k8s import AlreadyExistsError, ClusterError

logger = logging.getLogger(__name__)


class ClusterClient(Protocol):
    """The per-kind get/create/list capability the reconciler needs."""

    async def get_object(
        self, kind: str, name: str, namespace: Optional[str] = None
    ) -> Optional[Dict[str, Any]]: ...

    async def create_object(self, obj: GenericObject) -> None: ...

    async def list_names(
        self, kind: str, namespace: Optional[str] = None
    ) -> List[str]: ...


class ReconcileError(RuntimeError):
    """Reconciliation stopped on a cluster failure.

    Attributes:
        ref (Optional[ObjectRef]): The object being processed, if known.
        applied (List[ObjectRef]): Objects created before the failure; they stay
            in the cluster.
    """

    def __init__(
        self,
        message: str,
        ref: Optional[ObjectRef] = None,
        applied: Optional[List[ObjectRef]] = None,
    ) -> None:
        super().__init__(message)
        self.ref = ref
        self.applied = applied or []


class ReconcileReport(BaseModel):
    namespace_created: bool = False
    created: List[ObjectRef] = Field(default_factory=list)
    skipped: List[ObjectRef] = Field(default_factory=list)


async def ensure_namespace(cluster: ClusterClient, namespace: str) -> bool:
    """
    Create the namespace if it is missing.

    Returns:
        bool: True if it was created, False if it already existed.

    Raises:
        ReconcileError: On any cluster failure other than NotFound.
    """
    ns_obj = namespace_object(namespace)
    ref = ns_obj.ref()
    try:
        if await cluster.get_object("Namespace", namespace) is not None:
            return False
        await cluster.create_object(ns_obj)
    except AlreadyExistsError:
        return False
    except ClusterError as ex:
        raise ReconcileError(
            f"failed to create namespace '{namespace}': {ex}", ref=ref
        ) from ex

    logger.info("Namespace %r created.", namespace)
    return True


async def apply_object(
    cluster: ClusterClient, obj: GenericObject, ref: ObjectRef
) -> bool:
    """
    Get-or-create a single object.

    Returns:
        bool: True if created, False if it already existed and was skipped.

    Raises:
        ClusterError: On any failure other than NotFound/AlreadyExists.
    """
    existing = await cluster.get_object(ref.kind, ref.name, ref.namespace)
    if existing is not None:
        return False
    try:
        await cluster.create_object(obj)
    except AlreadyExistsError:
        # Appeared between get and create; still counts as applied.
        return False
    return True


async def apply_objects(
    cluster: ClusterClient,
    objects: Sequence[GenericObject],
    namespace: str,
) -> ReconcileReport:
    """
    Apply objects in order, namespace first, creating only what is missing.

    Args:
        cluster: The live-cluster capability.
        objects: Desired objects, applied in sequence order.
        namespace: Target namespace; objects without one are placed here.

    Returns:
        ReconcileReport: What was created and what was skipped, in order.

    Raises:
        ReconcileError: On the first cluster failure. Later objects are not
            attempted and earlier ones are not rolled back.
    """
    report = ReconcileReport()
    report.namespace_created = await ensure_namespace(cluster, namespace)

    for obj in objects:
        try:
            ref = obj.ref(default_namespace=namespace)
        except MissingFieldError as ex:
            raise ReconcileError(
                f"object cannot be applied: {ex}", applied=report.created
            ) from ex

        try:
            created = await apply_object(
                cluster, obj.with_namespace(ref.namespace or namespace), ref
            )
        except ClusterError as ex:
            raise ReconcileError(
                f"failed to apply {ref}: {ex}", ref=ref, applied=report.created
            ) from ex

        if created:
            logger.info("%s %r deployed.", ref.kind, ref.name)
            report.created.append(ref)
        else:
            logger.info("%s %r already exists, skipped.", ref.kind, ref.name)
            report.skipped.append(ref)

    return report
