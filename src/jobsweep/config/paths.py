"""
jobsweep Path and URL Configuration.

This module defines the URL templates and default table identifiers used
to talk to the external systems.

URL Templates:
    - Apify: REST API v2 base URL. Actor ids of the form "user/name" are
      sent as "user~name" in URL paths.
    - DataGOL: base URL of the no-code API; workspace and table ids are
      appended per request.
      Read rows:  {base}/workspaces/{workspace_id}/tables/{table_id}/data/external
      Write rows: {base}/workspaces/{workspace_id}/tables/{table_id}/rows

Input Location:
    - The run input is read from a JSON file. When no path is given, the
      JOBSWEEP_INPUT environment variable is used, then the default
      key-value store record of a local Apify storage directory.
"""

# ---------- PATHS ----------

from pathlib import Path

# Default location of the run input when running under a local Apify storage
DEFAULT_INPUT_PATH = Path("storage") / "key_value_stores" / "default" / "INPUT.json"

# ---------- URLS ----------

# ----- APIFY -----

APIFY_API_BASE_URL = "https://api.apify.com/v2"

# ----- DATAGOL -----

DATAGOL_API_BASE_URL = "https://be-eu.datagol.ai/noCo/api/v2"

DATAGOL_READ_URL_TEMPLATE = (
    "{base_url}/workspaces/{workspace_id}/tables/{table_id}/data/external"
)
DATAGOL_WRITE_URL_TEMPLATE = "{base_url}/workspaces/{workspace_id}/tables/{table_id}/rows"

# Default DataGOL table ids
JOB_TITLES_TABLE_ID = "395a586f-2d3e-4489-a5d9-be0039f97aa1"
EXCLUDED_COMPANIES_TABLE_ID = "ac27bdbc-b564-429e-815d-356d58b00d06"
LOCATIONS_TABLE_ID = "6122189a-764f-40a9-9721-d756b7dd3626"
JOB_POSTINGS_TABLE_ID = "8e71ed6d-ae6a-495c-b93b-1a9429370b56"
