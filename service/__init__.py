"""ListingTrust HTTP service (FastAPI)."""
