"""jobsweep: budgeted, deduplicated job posting searches across title/location pairs."""

__version__ = "0.1.0"
