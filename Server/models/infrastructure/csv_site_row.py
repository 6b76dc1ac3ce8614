"""
HubSpoke Server - CSV Site Row Model

Dataclass for one row of the hub/spoke CSV card-sort file.
"""

from dataclasses import dataclass


@dataclass
class CsvSiteRow:
    """One hub/spoke pairing as it appears in the CSV file (all values raw text)"""
    division: str = ""
    hub_site_name: str = ""
    hub_url: str = ""
    spoke_site_name: str = ""
    spoke_url: str = ""
    last_activity: str = ""
    files: str = ""
    storage_used: str = ""
    created_by: str = ""
