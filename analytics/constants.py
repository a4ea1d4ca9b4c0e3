import os

# |modified z| at or above this flags an outlier in detect_outliers().
OUTLIER_THRESHOLD: float = float(os.getenv("OUTLIER_THRESHOLD", "3.0"))

# Lower threshold used when picking outliers for the insight feed.
INSIGHT_OUTLIER_THRESHOLD: float = float(
    os.getenv("INSIGHT_OUTLIER_THRESHOLD", "2.5")
)

ROLLING_WINDOW_SIZE: int = int(os.getenv("ROLLING_WINDOW_SIZE", "4"))
