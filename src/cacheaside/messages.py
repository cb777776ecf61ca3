"""Log message templating for cache events.

:class:`MessageFormatter` renders ``{field}`` placeholders from a request and
an optional response.  Extra fields (the cache ``event`` and the seconds
until expiry) are supplied by the caller.  Placeholders that cannot be
resolved are left in the output untouched, so a typo in a template never
breaks a request.

Supported fields:

============================  ==============================================
``{method}``                  Request method
``{uri}`` / ``{url}``         Full request URL
``{target}``                  Path plus query string
``{host}``                    Request host
``{version}``                 Response HTTP version number (``1.1``)
``{code}``                    Response status code
``{phrase}``                  Response reason phrase
``{ts}``                      Current UTC time, ISO 8601
``{req_header_<name>}``       A request header
``{res_header_<name>}``       A response header
============================  ==============================================
"""

from __future__ import annotations

import string
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

SHORT = '[{ts}] "{method} {target} HTTP/{version}" {code}'
"""Request line plus status code."""

DEFAULT_TEMPLATE = SHORT + " {event} (expires in {expires}s)"
"""Template used for cache events when none is configured."""


class _Fields(dict):
    """Mapping that leaves unknown placeholders in place."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class _LenientFormatter(string.Formatter):
    def get_field(self, field_name: str, args: Any, kwargs: Any) -> Any:
        # Attribute and index lookups are not supported; treat the whole
        # placeholder as a plain key.
        return kwargs[field_name], field_name

    def format_field(self, value: Any, format_spec: str) -> str:
        try:
            return super().format_field(value, format_spec)
        except (TypeError, ValueError):
            return str(value)


class MessageFormatter:
    """Render a message template for a request/response pair.

    Args:
        template: Template string with ``{field}`` placeholders.  Defaults to
            :data:`DEFAULT_TEMPLATE`.

    Example::

        formatter = MessageFormatter("{method} {uri} -> {code}")
        formatter.format(request, response)
    """

    def __init__(self, template: Optional[str] = None) -> None:
        self.template = template or DEFAULT_TEMPLATE
        self._formatter = _LenientFormatter()

    def format(
        self,
        request: httpx.Request,
        response: Optional[httpx.Response] = None,
        **extras: Any,
    ) -> str:
        """Return the rendered message.

        Args:
            request: The request being logged.
            response: The response, if one is available.
            **extras: Additional fields, e.g. ``event`` and ``expires``.
        """
        fields = _Fields(self._request_fields(request))
        if response is not None:
            fields.update(self._response_fields(response))
        fields.update(extras)
        try:
            return self._formatter.vformat(self.template, (), fields)
        except ValueError:
            # Malformed template (e.g. a lone brace).
            return self.template

    def _request_fields(self, request: httpx.Request) -> dict[str, Any]:
        target = request.url.raw_path.decode("ascii", errors="replace")
        fields: dict[str, Any] = {
            "method": request.method,
            "uri": str(request.url),
            "url": str(request.url),
            "target": target,
            "host": request.url.host,
            "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        for name, value in request.headers.items():
            fields[f"req_header_{name.lower()}"] = value
        return fields

    def _response_fields(self, response: httpx.Response) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "code": response.status_code,
            "phrase": response.reason_phrase,
            "version": response.http_version.removeprefix("HTTP/"),
        }
        for name, value in response.headers.items():
            fields[f"res_header_{name.lower()}"] = value
        return fields
