"""
kssh/manifests/__init__.py

Import interface for manifest handling:

- assets.py for the bootstrap script and templates
- render.py for template rendering
- decoder.py for multi-document YAML decoding
"""

from kssh.manifests.assets import (
    ManifestAssets,
    load_default_assets,
    load_assets_from_dir,
)
from kssh.manifests.render import (
    TemplateContext,
    TemplateRenderError,
    escape_multiline,
    render_template,
)
from kssh.manifests.decoder import (
    ManifestDecodeError,
    decode_manifests,
    iter_manifests,
)

__all__ = [
    "ManifestAssets",
    "load_default_assets",
    "load_assets_from_dir",
    "TemplateContext",
    "TemplateRenderError",
    "escape_multiline",
    "render_template",
    "ManifestDecodeError",
    "decode_manifests",
    "iter_manifests",
]
