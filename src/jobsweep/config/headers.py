"""
jobsweep HTTP Headers Configuration

This module defines HTTP headers used when calling the external APIs.

Supported APIs:
    - Apify: bearer token authentication, JSON bodies
    - DataGOL: x-auth-token authentication, JSON bodies
"""

# ---------- HEADERS ----------

USER_AGENT = "jobsweep/0.1"

# ----- APIFY -----


def apify_headers(token: str) -> dict:
    """Headers for the Apify REST API."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }


# ----- DATAGOL -----


def datagol_headers(token: str) -> dict:
    """Headers for the DataGOL API."""
    return {
        "x-auth-token": token,
        "Content-Type": "application/json",
        "Accept": "*/*",  # The rows endpoint answers with plain text on success
        "User-Agent": USER_AGENT,
    }
