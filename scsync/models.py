from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DomainRecord:
    """
    The slice of a tracked domain row the sync engine reads.
    `search_console` is the opaque JSON settings string stored with the domain.
    """
    domain: str
    search_console: Optional[str] = None

    def search_console_settings(self) -> Dict[str, Any]:
        """Parse the settings string. Raises ValueError on malformed JSON."""
        if not self.search_console:
            return {}
        parsed = json.loads(self.search_console)
        if not isinstance(parsed, dict):
            raise ValueError("search_console settings must be a JSON object")
        return parsed

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainRecord":
        search_console = data.get('search_console')
        if isinstance(search_console, dict):
            search_console = json.dumps(search_console)
        return cls(domain=data.get('domain', ''), search_console=search_console)


def empty_sc_snapshot() -> Dict[str, Any]:
    """Fresh snapshot shape, as persisted in SC_<domain>.json"""
    return {
        'threeDays': [],
        'sevenDays': [],
        'thirtyDays': [],
        'stats': [],
        'lastFetched': '',
        'lastFetchError': '',
    }
