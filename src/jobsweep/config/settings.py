# ---------- SETTINGS ----------

# The provider actor that executes one search (title x location)
ACTOR_ID = "bebity/linkedin-jobs-scraper"

# Global budget of admitted postings per invocation
TOTAL_JOBS_TO_FETCH = 50
# Maximum number of provider runs in flight at the same time (one batch)
MAX_CONCURRENT_SCRAPERS = 24
# Timeout passed through to each provider run, and its upper bound
SCRAPER_TIMEOUT_SECS = 600
MAX_SCRAPER_TIMEOUT_SECS = 3600
# Memory passed through to each provider run
SCRAPER_MEMORY_MBYTES = 256
# Recency window for both the provider input and the posting filter
POSTED_IN_LAST_HOURS = 24

# Run reuse: how far back and how many recent runs are inspected
RUN_REUSE_LOOKBACK_HOURS = 24
RUN_REUSE_LIST_LIMIT = 10

# Random delay before each new provider run, in seconds (min, max)
START_STAGGER_SECS = (0.1, 0.5)
# Pause between batches, in seconds
BATCH_DELAY_SECS = 1.5
# Slack added to the expected run duration, in seconds
RUN_DURATION_SLACK_SECS = 120

# Rows requested from the filter-value tables
FILTER_VALUES_PAGE_SIZE = 1000
# HTTP timeouts, in seconds
FILTER_VALUES_TIMEOUT_SECS = 20
SINK_TIMEOUT_SECS = 30
PROVIDER_TIMEOUT_SECS = 90

# ----- DEFAULT SEARCH SPACE -----

# Used when neither the run input nor DataGOL provides values
DEFAULT_JOB_TITLES = [
    "Financial controller",
    "Business controller",
    "Financial analyst",
    "FP&A",
    "Finance Business Partner",
    "Contrôleur de gestion",
    "Analyste Financier",
    "Financieel analist",
    "Financieel controller",
    "Accountant",
    "comptable",
    "boekhouder",
    "gestionnaire de dossiers",
    "dossierbeheerder",
]

DEFAULT_LOCATIONS = [
    "Brussels",
    "Namur",
    "Charleroi",
    "Liège",
    "Mons",
    "Arlon",
]

# Full names only: these are also matched as whole words in titles and descriptions
DEFAULT_EXCLUDED_COMPANIES = [
    "Deloitte",
    "PricewaterhouseCoopers",
    "Ernst & Young",
    "KPMG",
    "Accenture",
]
