"""
Query and Cookie Codec

Pure helpers for form-encoding API parameters and for reading and writing
the Cookie / Set-Cookie headers that carry a MediaWiki login session.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence
from urllib.parse import quote

CookieJar = Dict[str, str]

# Characters encodeURIComponent leaves alone, besides letters, digits and "-_.~".
_QUERY_SAFE = "!*'()"


def _render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(params: Mapping[str, Any]) -> str:
    """
    Encode parameters as ``key=value`` pairs joined by ``&``.

    Keys and values are percent-encoded, including ``&``, ``=``, ``|`` and
    ``/``. Pair order follows mapping iteration order.
    """
    return "&".join(
        f"{quote(str(key), safe=_QUERY_SAFE)}={quote(_render_value(value), safe=_QUERY_SAFE)}"
        for key, value in params.items()
    )


def build_cookie_header(jar: Mapping[str, str]) -> str:
    """Render a jar as a Cookie header value, in jar order."""
    return "; ".join(f"{name}={value}" for name, value in jar.items())


def _is_allowed(line: str, allowed_names: Optional[Iterable[str]]) -> bool:
    if allowed_names is None:
        return True
    return any(line.startswith(f"{name}=") for name in allowed_names)


def parse_set_cookie_headers(
    header_lines: Optional[Sequence[str]],
    jar: Optional[CookieJar] = None,
    allowed_names: Optional[Iterable[str]] = None,
) -> CookieJar:
    """
    Write the name/value pairs of Set-Cookie lines into a jar.

    Parameters
    ----------
    header_lines : Optional[Sequence[str]]
        Raw Set-Cookie header values, one per cookie.

    jar : Optional[CookieJar]
        Jar to mutate in place. A new one is created when omitted.

    allowed_names : Optional[Iterable[str]]
        Whitelist of cookie names. A line is kept only when the raw line
        starts with ``<name>=`` for an allowed name. When omitted every
        cookie is kept.

    Returns
    -------
    CookieJar
        The jar that was written to. When there are no header lines the jar
        is returned untouched.
    """
    if jar is None:
        jar = {}

    if not header_lines:
        return jar

    if allowed_names is not None:
        allowed_names = list(allowed_names)

    for line in header_lines:
        if not _is_allowed(line, allowed_names):
            continue

        cookie = line.split(";", 1)[0].strip()
        name, sep, value = cookie.partition("=")
        if not sep or not name:
            continue
        jar[name] = value

    return jar
