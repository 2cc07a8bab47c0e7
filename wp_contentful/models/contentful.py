from __future__ import annotations

from typing import Any, Dict


def link(record_id: str, link_type: str = "Entry") -> Dict[str, Any]:
    """Contentful link object pointing at an entry or asset."""
    return {"sys": {"type": "Link", "linkType": link_type, "id": record_id}}


def entry_link(record_id: str) -> Dict[str, Any]:
    return link(record_id, "Entry")


def asset_link(record_id: str) -> Dict[str, Any]:
    return link(record_id, "Asset")


def field_value(record: Dict[str, Any], name: str, locale: str) -> Any:
    """Read ``record.fields[name][locale]``; ``None`` when absent."""
    return (((record or {}).get("fields") or {}).get(name) or {}).get(locale)
