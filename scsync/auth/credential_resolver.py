from __future__ import annotations
"""
Search Console credential resolution.

Credentials come from three tiers, consulted in order:
  1. Domain settings (search_console JSON on the domain record, usually encrypted)
  2. App settings file (data/settings.json, always encrypted)
  3. Environment (SEARCH_CONSOLE_CLIENT_EMAIL / SEARCH_CONSOLE_PRIVATE_KEY)

Each tier is a provider returning a complete SCCredentials or None.
"""

import json
import os
from typing import Callable, List, Optional, Sequence

from scsync.auth.credentials_model import SCCredentials
from scsync.models import DomainRecord
from scsync.settings import settings
from scsync.utils.crypto import decrypt_field

PLAINTEXT_KEY_MARKER = 'BEGIN PRIVATE KEY'

CredentialProvider = Callable[[Optional[DomainRecord]], Optional[SCCredentials]]


def _complete_or_none(creds: SCCredentials) -> Optional[SCCredentials]:
    return creds if creds.is_complete else None


def domain_settings_credentials(domain: Optional[DomainRecord]) -> Optional[SCCredentials]:
    """Tier 1: credentials stored with the domain record"""
    if not domain or not domain.search_console:
        return None

    sc_settings = domain.search_console_settings()
    client_email = sc_settings.get('client_email') or ''
    private_key = sc_settings.get('private_key') or ''
    if not private_key:
        return None

    if PLAINTEXT_KEY_MARKER not in private_key:
        client_email = decrypt_field(client_email)
        private_key = decrypt_field(private_key)

    return _complete_or_none(SCCredentials(client_email=client_email, private_key=private_key))


def app_settings_credentials(
    domain: Optional[DomainRecord] = None,
    settings_path: Optional[str] = None,
) -> Optional[SCCredentials]:
    """Tier 2: global credentials from the app settings file"""
    path = settings_path or settings.APP_SETTINGS_PATH
    if not os.path.exists(path):
        return None

    with open(path, 'r', encoding='utf-8') as f:
        raw = f.read()
    app_settings = json.loads(raw) if raw.strip() else {}

    return _complete_or_none(SCCredentials(
        client_email=decrypt_field(app_settings.get('search_console_client_email')),
        private_key=decrypt_field(app_settings.get('search_console_private_key')),
    ))


def environment_credentials(domain: Optional[DomainRecord] = None) -> Optional[SCCredentials]:
    """Tier 3: plaintext credentials from the environment"""
    return _complete_or_none(SCCredentials(
        client_email=settings.SEARCH_CONSOLE_CLIENT_EMAIL or '',
        private_key=settings.SEARCH_CONSOLE_PRIVATE_KEY or '',
    ))


DEFAULT_PROVIDERS: List[CredentialProvider] = [
    domain_settings_credentials,
    app_settings_credentials,
    environment_credentials,
]


def get_search_console_api_info(
    domain: Optional[DomainRecord] = None,
    providers: Optional[Sequence[CredentialProvider]] = None,
) -> SCCredentials:
    """
    Resolve the credentials to use for a domain.

    Providers run in priority order; the first complete pair wins. A failing
    provider (bad JSON, unreadable file, undecryptable value) is logged and
    skipped, so this never raises. Returns an empty pair when nothing matches.
    """
    domain_name = domain.domain if domain else '(global)'

    for provider in (providers if providers is not None else DEFAULT_PROVIDERS):
        try:
            creds = provider(domain)
        except Exception as e:
            print(f"[SEARCH_CONSOLE] Credential tier {getattr(provider, '__name__', provider)} "
                  f"failed for {domain_name}: {e}")
            continue
        if creds and creds.is_complete:
            return creds

    return SCCredentials()


def resolve_search_console_credentials(
    domain_creds: Optional[SCCredentials],
    global_creds: Optional[SCCredentials],
) -> Optional[SCCredentials]:
    """Domain level credentials take precedence over global ones when complete"""
    if domain_creds and domain_creds.is_complete:
        return domain_creds
    return global_creds
