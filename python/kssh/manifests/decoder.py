"""
kssh/manifests/decoder.py

Turns a '---' separated YAML (or JSON) stream into GenericObjects. The decoder
knows nothing about Kubernetes kinds; it only requires each non-empty document
to be a mapping.
"""

from __future__ import annotations

from typing import Iterator, List

import yaml
from pydantic import ValidationError

from kssh.models.k8s import GenericObject


class ManifestDecodeError(ValueError):
    """A document in the stream could not be decoded."""


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as strings, the way JSON sees them."""


_ManifestLoader.yaml_implicit_resolvers = {
    first_char: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first_char, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def iter_manifests(text: str) -> Iterator[GenericObject]:
    """
    Lazily decode one document at a time, skipping empty documents.

    Raises:
        ManifestDecodeError: On a YAML syntax error, a non-mapping document, or
            a value JSON cannot represent (e.g. !!binary). Objects already
            yielded are not retracted; use decode_manifests for all-or-nothing
            behaviour.
    """
    try:
        for index, doc in enumerate(yaml.load_all(text, Loader=_ManifestLoader)):
            if doc is None or doc == {}:
                continue
            if not isinstance(doc, dict):
                raise ManifestDecodeError(
                    f"error in decode yaml: document {index} is a "
                    f"{type(doc).__name__}, expected a mapping"
                )
            try:
                obj = GenericObject(body=doc)
            except ValidationError as exc:
                raise ManifestDecodeError(
                    f"error in decode yaml: document {index}: {exc}"
                ) from exc
            yield obj
    except yaml.YAMLError as exc:
        raise ManifestDecodeError(f"error in decode yaml: {exc}") from exc


def decode_manifests(text: str) -> List[GenericObject]:
    """
    Decode every non-empty document in text.

    Returns:
        List[GenericObject]: One entry per non-empty document, in stream order.

    Raises:
        ManifestDecodeError: If any document fails; no partial list is returned.
    """
    return list(iter_manifests(text))
