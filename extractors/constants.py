import os

# Weekly hours above this (or below zero) are kept but flagged.
MAX_WEEKLY_HOURS: float = float(os.getenv("MAX_WEEKLY_HOURS", "100"))
