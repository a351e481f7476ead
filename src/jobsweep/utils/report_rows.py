"""
Report row mapping.

Turns a raw provider posting into the row payload of the DataGOL job
postings table. Column names are the lower-cased provider property names.
"""

from typing import Any, Dict, Optional

# Provider property -> DataGOL column
COLUMN_MAP = {
    "title": "title",
    "companyName": "companyname",
    "location": "location",
    "description": "description",
    "jobUrl": "joburl",
    "companyUrl": "companyurl",
    "applyUrl": "applyurl",
    "applyType": "applytype",
    "workType": "worktype",
    "contractType": "contracttype",
    "experienceLevel": "experiencelevel",
    "publishedAt": "publishedat",
    "postedTime": "postedtime",
    "applicationsCount": "applicationscount",
    "salary": "salary",
    "benefits": "benefits",
    "sector": "sector",
    "companyId": "companyid",
    "posterProfileUrl": "posterprofileurl",
    "posterFullName": "posterfullname",
}


def build_report_row(posting: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map a posting to {"position": 0, "cellValues": {...}}.

    Properties that are missing or None are left out. Returns None when no
    property maps, so the caller can skip the row.
    """
    cell_values = {
        column: posting[prop]
        for prop, column in COLUMN_MAP.items()
        if posting.get(prop) is not None
    }
    if not cell_values:
        return None
    return {"position": 0, "cellValues": cell_values}
