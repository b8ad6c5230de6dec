"""Shared pytest fixtures for kssh tests."""

from __future__ import annotations

import functools
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from kssh.manifests import load_default_assets
from kssh.models.k8s import GenericObject
from kssh.utils.k8s import AlreadyExistsError, ClusterError
from kssh.utils.ssh import generate_ssh_keypair

# 4096-bit keys are slow to generate; key format does not depend on the size.
TEST_KEY_SIZE = 2048

Key = Tuple[str, Optional[str], str]


class FakeCluster:
    """In-memory stand-in for KubectlCluster.

    Records every call in order. `fail_get` / `fail_create` map a
    (kind, namespace, name) key to an error raised instead of the call.
    """

    def __init__(self) -> None:
        self.objects: Dict[Key, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Key]] = []
        self.fail_get: Dict[Key, ClusterError] = {}
        self.fail_create: Dict[Key, ClusterError] = {}
        self.race: Set[Key] = set()

    @staticmethod
    def key(kind: str, name: str, namespace: Optional[str]) -> Key:
        return (kind, None if kind == "Namespace" else namespace, name)

    def add(self, kind: str, name: str, namespace: Optional[str] = None) -> None:
        self.objects[self.key(kind, name, namespace)] = {
            "kind": kind,
            "metadata": {"name": name, "namespace": namespace},
        }

    @property
    def creates(self) -> List[Key]:
        return [key for op, key in self.calls if op == "create"]

    async def get_object(
        self, kind: str, name: str, namespace: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        key = self.key(kind, name, namespace)
        self.calls.append(("get", key))
        if key in self.fail_get:
            raise self.fail_get[key]
        return self.objects.get(key)

    async def create_object(self, obj: GenericObject) -> None:
        key = self.key(obj.kind, obj.name, obj.namespace)
        self.calls.append(("create", key))
        if key in self.fail_create:
            raise self.fail_create[key]
        if key in self.objects or key in self.race:
            raise AlreadyExistsError(f"{obj.kind} '{obj.name}' already exists")
        self.objects[key] = obj.to_dict()

    async def list_names(self, kind: str, namespace: Optional[str] = None) -> List[str]:
        scope = self.key(kind, "", namespace)[1]
        return [name for (k, ns, name) in self.objects if k == kind and ns == scope]


@pytest.fixture
def fake_cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def keygen():
    return functools.partial(generate_ssh_keypair, key_size=TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def default_assets():
    return load_default_assets()
