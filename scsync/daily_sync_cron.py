from __future__ import annotations
"""
Search Console - Daily Sync Cron Service
Syncs Search Console snapshots for every tracked domain.

Usage:
  python -m scsync.daily_sync_cron --domains-file domains.json [--max-workers 4]

domains.json is a list of {"domain": "...", "search_console": "<json string>"}.
"""

import argparse
import json
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from scsync.auth.credential_resolver import get_search_console_api_info
from scsync.auth.credentials_model import SCCredentials
from scsync.models import DomainRecord
from scsync.settings import settings
from scsync.sync_engine import fetch_domain_sc_data


def log_cron(message: str, level: str = "INFO"):
    """Structured logging for cron orchestration."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    prefix = {
        "INFO": "ℹ️ ",
        "SUCCESS": "✅",
        "ERROR": "❌",
        "WARNING": "⚠️ ",
        "PROGRESS": "⏳"
    }.get(level, "")
    print(f"[{timestamp}] [CRON-SC-SYNC] {prefix} {message}")


def _unique_domains(domains: Iterable[DomainRecord]) -> List[DomainRecord]:
    # Two syncs of one domain in the same batch would race on its snapshot file
    seen = set()
    unique = []
    for domain in domains:
        if not domain or not domain.domain or domain.domain in seen:
            continue
        seen.add(domain.domain)
        unique.append(domain)
    return unique


def run_daily_sync(
    domains: Iterable[DomainRecord],
    max_workers: Optional[int] = None,
    sync_fn: Optional[Callable[..., Optional[Dict[str, Any]]]] = None,
    credential_lookup: Optional[Callable[[Optional[DomainRecord]], Any]] = None,
) -> Dict[str, List[str]]:
    """
    Sync every domain that has usable credentials.
    A failing domain is logged and does not stop the batch.

    Returns:
        {'success': [...], 'skipped': [...], 'failed': [...]} of domain names
    """
    sync_fn = sync_fn or fetch_domain_sc_data
    credential_lookup = credential_lookup or get_search_console_api_info
    workers = max_workers or settings.SC_CRON_MAX_WORKERS
    summary: Dict[str, List[str]] = {'success': [], 'skipped': [], 'failed': []}

    sc_global_api = credential_lookup(None)
    jobs = []
    for domain in _unique_domains(domains):
        sc_domain_api = credential_lookup(domain) if domain.search_console else SCCredentials()
        if not sc_domain_api.is_complete and not sc_global_api.is_complete:
            log_cron(f"SKIPPING {domain.domain}: Search Console is not integrated.", "WARNING")
            summary['skipped'].append(domain.domain)
            continue
        jobs.append((domain, sc_domain_api))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(sync_fn, domain, sc_domain_api, sc_global_api): domain
            for domain, sc_domain_api in jobs
        }
        for future in as_completed(futures):
            domain = futures[future]
            try:
                result = future.result()
            except Exception as e:
                log_cron(f"CRITICAL FAILURE for {domain.domain}: {e}", "ERROR")
                summary['failed'].append(domain.domain)
                continue

            if result is None:
                log_cron(f"FAILED {domain.domain}: snapshot was not saved.", "ERROR")
                summary['failed'].append(domain.domain)
            else:
                if result.get('lastFetchError'):
                    log_cron(f"{domain.domain} synced with errors: {result['lastFetchError']}", "WARNING")
                log_cron(f"Successfully synced {domain.domain}.", "SUCCESS")
                summary['success'].append(domain.domain)

    return summary


def load_domains(path: str) -> List[DomainRecord]:
    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)
    return [DomainRecord.from_dict(item) for item in raw]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Sync Search Console data for tracked domains")
    parser.add_argument("--domains-file", required=True, help="JSON list of domain records")
    parser.add_argument("--max-workers", type=int, default=None, help="Domains synced in parallel")
    args = parser.parse_args(argv)

    log_cron("Starting Search Console Sync Cron...")

    try:
        domains = load_domains(args.domains_file)
    except (OSError, ValueError) as e:
        log_cron(f"Could not load domains: {e}", "ERROR")
        return 1

    log_cron(f"Found {len(domains)} domains to process.")
    summary = run_daily_sync(domains, max_workers=args.max_workers)

    log_cron("=" * 50)
    log_cron("SEARCH CONSOLE SYNC SUMMARY")
    log_cron(f"Total Domains: {len(domains)}")
    log_cron(f"✅ Success:     {len(summary['success'])}")
    log_cron(f"⚠️  Skipped:     {len(summary['skipped'])}")
    log_cron(f"❌ Failed:      {len(summary['failed'])}")
    log_cron("=" * 50)

    # 0 = all synced, 1 = at least one failure, 2 = no failures but some skipped
    if summary['failed']:
        log_cron("Cron finished with ERRORS.", "ERROR")
        return 1
    if summary['skipped']:
        log_cron("Cron finished with some SKIPPED domains.", "WARNING")
        return 2
    log_cron("Cron finished SUCCESSFULLY.", "SUCCESS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
