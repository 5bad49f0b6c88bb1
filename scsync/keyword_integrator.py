"""
Keyword Integrator

Joins a domain snapshot onto a tracked keyword as a derived scData block.
Nothing here is persisted.
"""

from typing import Any, Dict, Optional

from scsync.config.date_windows import SC_WINDOW_AVG_KEYS, SC_WINDOWS
from scsync.gsc_client import build_sc_uid
from scsync.utils.metrics import round_half_up, round_to_2

SC_METRICS = ('impressions', 'visits', 'ctr', 'position')


def _empty_metric() -> Dict[str, float]:
    metric = {'yesterday': 0}
    for window_key, avg_key in SC_WINDOW_AVG_KEYS.items():
        metric[window_key] = 0
        metric[avg_key] = 0
    return metric


def _find_item(items, uid: str) -> Dict[str, Any]:
    for item in items or []:
        if item.get('uid') == uid:
            return item
    return {}


def integrate_keyword_sc_data(keyword: Dict[str, Any], sc_data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Return a copy of the keyword with per-window Search Console totals and
    daily averages under 'scData'. Windows without a matching row count as zero.
    """
    kuid = build_sc_uid(keyword.get('country', ''), keyword.get('device', ''), keyword.get('keyword', ''))
    sc_data = sc_data or {}
    metrics = {name: _empty_metric() for name in SC_METRICS}

    for days, window_key in SC_WINDOWS.items():
        avg_key = SC_WINDOW_AVG_KEYS[window_key]
        item = _find_item(sc_data.get(window_key), kuid)

        impressions = item.get('impressions') or 0
        visits = item.get('clicks') or 0
        ctr = round_to_2(item.get('ctr') or 0)
        position = round_half_up(item['position']) if item.get('position') else 0

        metrics['impressions'][window_key] = impressions
        metrics['visits'][window_key] = visits
        metrics['ctr'][window_key] = ctr
        metrics['position'][window_key] = position

        metrics['impressions'][avg_key] = round_half_up(impressions / days)
        metrics['visits'][avg_key] = round_half_up(visits / days)
        metrics['ctr'][avg_key] = round_to_2(ctr / days)
        metrics['position'][avg_key] = round_half_up(position / days)

    return {**keyword, 'scData': metrics}
