from __future__ import annotations

import os
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_IMAGE = "sheixinsheisb/ssh-server"
DEFAULT_PORT = 22

_DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_MAX_LABEL_LENGTH = 63


def check_dns_label(val: str) -> str:
    """Return val if it is a DNS-1123 label, else raise ValueError."""
    if len(val) > _MAX_LABEL_LENGTH or not _DNS_LABEL.match(val):
        raise ValueError(f"'{val}' is not a valid DNS-1123 label")
    return val


def _default_kubeconfig() -> str:
    return os.path.join(os.path.expanduser("~"), ".kube", "config")


class DeploySettings(BaseModel):
    """
    Everything one deployment run needs: where to deploy, how many replicas,
    how to reach the cluster, and what image/port the replicas run.
    """

    namespace: str = "default"
    name_prefix: str = "sample"
    replicas: int = Field(default=2, ge=0)
    kubeconfig: str = Field(default_factory=_default_kubeconfig)
    context: Optional[str] = None
    image: str = DEFAULT_IMAGE
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    template_dir: Optional[str] = None

    @field_validator("namespace", "name_prefix")
    @classmethod
    def validate_dns_label(cls, val: str) -> str:
        return check_dns_label(val)

    @field_validator("image")
    @classmethod
    def validate_image(cls, val: str) -> str:
        if not val.strip():
            raise ValueError("image must be a non-empty string")
        return val

    @model_validator(mode="after")
    def check_replica_names_fit(self) -> DeploySettings:
        """
        Replica names are '<prefix>-<index>' and are used as object names, so the
        longest one must still be a valid label.
        """
        if self.replicas > 0:
            longest = f"{self.name_prefix}-{self.replicas - 1}"
            if len(longest) > _MAX_LABEL_LENGTH:
                raise ValueError(
                    f"replica name '{longest}' exceeds {_MAX_LABEL_LENGTH} characters"
                )
        return self
