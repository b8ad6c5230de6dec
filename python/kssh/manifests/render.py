"""
kssh/manifests/render.py

Renders a manifest template against a TemplateContext using Jinja2 in strict
mode: any placeholder without a matching context field is an error, never an
empty string.
"""

from __future__ import annotations

from typing import Optional

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, Field


class TemplateRenderError(ValueError):
    """The template is malformed or references a field the context lacks."""


class TemplateContext(BaseModel):
    """
    Values substituted into a manifest template.

    Key material must already be base64 encoded and multi-line text already
    escaped (see escape_multiline) before it is placed here, since the rendered
    output is parsed as YAML afterwards. Unset fields are not visible to the
    template.
    """

    namespace: str
    name: Optional[str] = None
    image: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    authorized_keys: Optional[str] = None
    ssh_private_key: Optional[str] = None
    ssh_public_key: Optional[str] = None
    bootstrap_config_map_name: Optional[str] = None
    bootstrap_content: Optional[str] = None

    class Config:
        frozen = True


_environment = Environment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def escape_multiline(text: str) -> str:
    """
    Make text safe to place inside a double-quoted YAML scalar on one line.

    Backslashes and double quotes are escaped first. Line breaks and tabs then
    become '\\n', '\\r' and '\\t', which YAML turns back into the original
    characters, so CRLF scripts survive unchanged.
    """
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def render_template(
    template_text: str,
    context: TemplateContext,
    *,
    template_name: str = "template",
) -> str:
    """
    Substitute context fields into template_text.

    Args:
        template_text (str): Jinja2 template source.
        context (TemplateContext): The values to substitute.
        template_name (str): Used only in error messages.

    Returns:
        str: The rendered text. Identical inputs always give identical output.

    Raises:
        TemplateRenderError: On template syntax errors or unresolved placeholders.
    """
    try:
        template = _environment.from_string(template_text)
        return template.render(**context.model_dump(exclude_none=True))
    except TemplateError as exc:
        raise TemplateRenderError(
            f"Failed to render {template_name}: {exc}"
        ) from exc
