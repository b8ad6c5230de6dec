"""
kssh/models/k8s.py

Defines the generic Kubernetes object model produced by the manifest decoder
and consumed by the reconciler:

  - ManifestValue: the recursive value type of a decoded manifest tree.
  - ObjectRef:     the (kind, namespace, name) identity of one object.
  - GenericObject: one decoded manifest with typed accessors for the few
                   fields the reconciler cares about.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

T = TypeVar("T")

# Nested values are checked by GenericObject's body validator, since the alias
# itself cannot recurse.
ManifestValue = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]

_SCALAR_TYPES = (str, int, float, bool, type(None))


def _check_manifest_value(value: Any, path: List[str]) -> None:
    """Raise ValueError unless value is a tree of JSON-compatible nodes."""
    if isinstance(value, dict):
        for key, child in value.items():
            if not isinstance(key, str):
                raise ValueError(
                    f"field '{'.'.join(path) or '<root>'}' has non-string key {key!r}"
                )
            _check_manifest_value(child, path + [key])
    elif isinstance(value, list):
        for index, child in enumerate(value):
            _check_manifest_value(child, path + [str(index)])
    elif not isinstance(value, _SCALAR_TYPES):
        raise ValueError(
            f"field '{'.'.join(path)}' has unsupported type {type(value).__name__}"
        )

# Kinds that never carry a namespace.
CLUSTER_SCOPED_KINDS = frozenset(
    {
        "Namespace",
        "Node",
        "PersistentVolume",
        "StorageClass",
        "ClusterRole",
        "ClusterRoleBinding",
        "CustomResourceDefinition",
    }
)


class MissingFieldError(KeyError):
    """Raised when a required manifest field is absent or has the wrong type."""

    def __init__(self, path: Sequence[str], detail: str = "field is absent") -> None:
        self.path = ".".join(path)
        self.detail = detail
        super().__init__(f"{self.path}: {detail}")

    def __str__(self) -> str:
        return f"manifest field '{self.path}': {self.detail}"


class ObjectRef(BaseModel):
    """Identity of one cluster object. `namespace` is None for cluster-scoped kinds."""

    kind: str
    name: str
    namespace: Optional[str] = None

    class Config:
        frozen = True

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind} {self.namespace}/{self.name}"
        return f"{self.kind} {self.name}"


class GenericObject(BaseModel):
    """
    One decoded manifest document.

    The body is kept as an untyped tree; only apiVersion, kind, metadata.name and
    metadata.namespace are read through typed accessors. Required fields raise
    MissingFieldError when absent; the namespace accessor returns None instead.
    """

    body: Dict[str, ManifestValue] = Field(default_factory=dict)

    @field_validator("body")
    @classmethod
    def validate_body(cls, val: Dict[str, ManifestValue]) -> Dict[str, ManifestValue]:
        _check_manifest_value(val, [])
        return val

    def get_field(self, path: Sequence[str], expected_type: Type[T]) -> Optional[T]:
        """
        Look up a nested field and validate its type.

        Returns:
            The value, or None if any segment of the path is absent.

        Raises:
            MissingFieldError: If the value exists but is not of expected_type,
                or an intermediate segment is not a mapping.
        """
        node: Any = self.body
        for depth, key in enumerate(path):
            if not isinstance(node, dict):
                raise MissingFieldError(path[:depth], "expected a mapping")
            if key not in node:
                return None
            node = node[key]
        if node is None:
            return None
        try:
            return TypeAdapter(expected_type).validate_python(node, strict=True)
        except ValidationError as e:
            raise MissingFieldError(
                path, f"expected {getattr(expected_type, '__name__', expected_type)}"
            ) from e

    def require_field(self, path: Sequence[str], expected_type: Type[T]) -> T:
        value = self.get_field(path, expected_type)
        if value is None:
            raise MissingFieldError(path)
        return value

    @property
    def api_version(self) -> str:
        return self.require_field(["apiVersion"], str)

    @property
    def kind(self) -> str:
        return self.require_field(["kind"], str)

    @property
    def name(self) -> str:
        return self.require_field(["metadata", "name"], str)

    @property
    def namespace(self) -> Optional[str]:
        return self.get_field(["metadata", "namespace"], str) or None

    @property
    def cluster_scoped(self) -> bool:
        return self.kind in CLUSTER_SCOPED_KINDS

    def ref(self, default_namespace: Optional[str] = None) -> ObjectRef:
        """Return the object's identity, filling in default_namespace if unset."""
        if self.cluster_scoped:
            return ObjectRef(kind=self.kind, name=self.name)
        return ObjectRef(
            kind=self.kind,
            name=self.name,
            namespace=self.namespace or default_namespace,
        )

    def with_namespace(self, namespace: str) -> GenericObject:
        """
        Return a copy whose metadata.namespace is set, if it was not already.
        Cluster-scoped objects are returned unchanged.
        """
        if self.namespace or self.cluster_scoped:
            return self
        body = self.to_dict()
        metadata = body.setdefault("metadata", {})
        if not isinstance(metadata, dict):
            raise MissingFieldError(["metadata"], "expected a mapping")
        metadata["namespace"] = namespace
        return GenericObject(body=body)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.body)


def namespace_object(name: str) -> GenericObject:
    """Build the manifest of a v1 Namespace."""
    return GenericObject(
        body={
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {"name": name},
        }
    )
