# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Match concrete URIs against ``{name}`` style URI templates.

Only simple string expansion is supported: each placeholder matches one
non-empty path segment.
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from ..ir import uri_placeholders


class UriTemplate:
    __slots__ = ("template", "variables", "_pattern")

    def __init__(self, template: str) -> None:
        self.template = template
        self.variables = uri_placeholders(template)

        parts: list[str] = []
        seen: set[str] = set()
        position = 0
        for match in re.finditer(r"\{([^{}]+)\}", template):
            group = _group(match.group(1).strip())
            parts.append(re.escape(template[position : match.start()]))
            parts.append(f"(?P={group})" if group in seen else f"(?P<{group}>[^/]+)")
            seen.add(group)
            position = match.end()
        parts.append(re.escape(template[position:]))
        self._pattern = re.compile("".join(parts) + r"/?\Z")

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the placeholder values if *uri* fits the template."""
        found = self._pattern.match(uri)
        if found is None:
            return None
        groups = found.groupdict()
        return {name: unquote(groups[_group(name)]) for name in self.variables}

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"


def _group(name: str) -> str:
    return "v_" + re.sub(r"\W", "_", name)


__all__ = ["UriTemplate"]
