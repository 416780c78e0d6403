"""Standard output of deprecation notices."""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

BASE_URL = "https://docs.example.com/deprecations#"
DEFAULT_TEMPLATE = (
    "`{{ .Property }}` should not be used anymore, check {{ .URL }} for more info"
)

_FIELD = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


def _render(template: str, values: dict[str, str]) -> str:
    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in values:
            raise KeyError(f"unknown template field: {key}")
        return values[key]

    return _FIELD.sub(substitute, template)


def notice(ctx: Any, prop: str) -> None:
    """Warn that ``prop`` is deprecated and flag the context."""
    notice_custom(ctx, prop, DEFAULT_TEMPLATE)


def notice_custom(ctx: Any, prop: str, template: str) -> None:
    """Warn about ``prop`` with a custom template and flag the context."""
    ctx.deprecated = True
    url = BASE_URL + prop.replace(".", "").replace("_", "")
    message = _render("DEPRECATED: " + template, {"URL": url, "Property": prop})
    logger.warning(message)