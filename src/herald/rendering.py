"""Jinja2 template rendering for notification content."""

from collections.abc import Mapping
from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from herald.exceptions import ValidationError

# Fields holding markup; every other field is plain text and is not escaped.
HTML_FIELDS = frozenset({"html"})

_html_env = SandboxedEnvironment(
    autoescape=True,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)
_text_env = SandboxedEnvironment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)


def render_template(
    template_str: str, context: Mapping[str, Any], *, html: bool = False
) -> str:
    """Render a Jinja2 template string with the given context.

    Uses SandboxedEnvironment to prevent SSTI and StrictUndefined
    to raise on missing variables. Context values are HTML-escaped only
    when ``html`` is true.
    All context values are converted to strings for safe template rendering.
    """
    env = _html_env if html else _text_env
    str_context = {k: str(v) for k, v in context.items()}
    template = env.from_string(template_str)
    return template.render(str_context)


def render_fields(
    templates: Mapping[str, str], context: Mapping[str, Any]
) -> dict[str, str]:
    """Render every field template, e.g. ``{"subject": ..., "html": ...}``.

    Only fields named in ``HTML_FIELDS`` are autoescaped.
    Raises ValidationError naming the field that failed to render.
    """
    rendered: dict[str, str] = {}
    for field_name, template_str in templates.items():
        try:
            rendered[field_name] = render_template(
                template_str, context, html=field_name in HTML_FIELDS
            )
        except TemplateError as exc:
            raise ValidationError(
                f"Failed to render template field '{field_name}': {exc}",
                details={"field": field_name},
            ) from exc
    return rendered
