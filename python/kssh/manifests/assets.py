"""
kssh/manifests/assets.py

The opaque text assets a deployment is rendered from: the bootstrap script and
the two manifest templates. They are passed around as an immutable
ManifestAssets value so tests and the CLI can substitute their own.
"""

from __future__ import annotations

import os
from importlib import resources

import aiofiles
from pydantic import BaseModel

BOOTSTRAP_SCRIPT_FILE = "bootstrap.sh"
SYSTEM_TEMPLATE_FILE = "system_objects.yaml.j2"
REPLICA_TEMPLATE_FILE = "replica_objects.yaml.j2"

DEFAULT_BOOTSTRAP_CONFIG_MAP_NAME = "bootstrap.sh"


class ManifestAssets(BaseModel):
    bootstrap_script: str
    system_template: str
    replica_template: str
    bootstrap_config_map_name: str = DEFAULT_BOOTSTRAP_CONFIG_MAP_NAME

    class Config:
        frozen = True


def load_default_assets() -> ManifestAssets:
    """Load the bootstrap script and templates shipped with the package."""
    templates = resources.files("kssh.manifests").joinpath("templates")
    return ManifestAssets(
        bootstrap_script=templates.joinpath(BOOTSTRAP_SCRIPT_FILE).read_text(
            encoding="utf-8"
        ),
        system_template=templates.joinpath(SYSTEM_TEMPLATE_FILE).read_text(
            encoding="utf-8"
        ),
        replica_template=templates.joinpath(REPLICA_TEMPLATE_FILE).read_text(
            encoding="utf-8"
        ),
    )


async def load_assets_from_dir(directory: str) -> ManifestAssets:
    """
    Load assets from a directory holding the same three files as the packaged
    templates directory.

    Raises:
        FileNotFoundError: If any of the three files is missing.
    """

    async def _read(file_name: str) -> str:
        async with aiofiles.open(
            os.path.join(directory, file_name), mode="r", encoding="utf-8"
        ) as f:
            return await f.read()

    return ManifestAssets(
        bootstrap_script=await _read(BOOTSTRAP_SCRIPT_FILE),
        system_template=await _read(SYSTEM_TEMPLATE_FILE),
        replica_template=await _read(REPLICA_TEMPLATE_FILE),
    )
