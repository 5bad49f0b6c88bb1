from __future__ import annotations
"""
Domain identifier utilities.

Domains reach the engine either canonical (example.com) or as the slug used
in dashboard URLs, where '-' becomes '_' and '.' becomes '-'
(my-site.com <-> my_site-com).
"""

import os
import re
from typing import Optional

from scsync.settings import settings

_SLUG_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
_UNSAFE_FILENAME_CHARS = re.compile(r'[^a-zA-Z0-9.\-_]')

# Traversal markers, raw and percent-encoded
_FORBIDDEN_MARKERS = ('..', '/', '\\', '\x00', '%2f', '%5c', '%00', '%2e%2e', '%2e.', '.%2e')


def resolve_domain_identifier(domain: Optional[str]) -> str:
    """
    Normalize a domain identifier that may be a slug into a real domain name.

    - No dot and only [A-Za-z0-9_-]: treated as a slug, '-' -> '.' then '_' -> '-'
    - Anything else already looks canonical; only '_' -> '-' is applied

    Ambiguous on purpose: a canonical domain without a dot cannot be told
    apart from a slug, and literal underscores are never preserved.
    """
    trimmed = (domain or '').strip()
    if not trimmed:
        return ''

    if '.' not in trimmed and _SLUG_PATTERN.match(trimmed):
        return trimmed.replace('-', '.').replace('_', '-')

    return trimmed.replace('_', '-')


def domain_to_slug(domain: str) -> str:
    """Encode a canonical domain into its URL slug (inverse of resolve_domain_identifier)"""
    return (domain or '').strip().replace('-', '_').replace('.', '-')


def _has_traversal_marker(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in _FORBIDDEN_MARKERS)


def get_safe_cache_file_path(domain: Optional[str], data_dir: Optional[str] = None) -> Optional[str]:
    """
    Build the absolute SC_<domain>.json path for a domain identifier.

    Pure function (no filesystem access). Returns None when the identifier is
    empty, carries a traversal marker, or the final path would not sit
    strictly inside the data directory.
    """
    if domain is None or not isinstance(domain, str):
        return None
    if _has_traversal_marker(domain):
        return None

    domain_name = resolve_domain_identifier(domain)
    if not domain_name or _has_traversal_marker(domain_name):
        return None

    safe_domain = _UNSAFE_FILENAME_CHARS.sub('_', domain_name)
    base_dir = os.path.abspath(data_dir or settings.DATA_DIR)
    file_path = os.path.abspath(os.path.join(base_dir, f"SC_{safe_domain}.json"))

    if os.path.dirname(file_path) != base_dir or not file_path.startswith(base_dir + os.sep):
        return None

    return file_path
