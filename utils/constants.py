import os

# Evaluate formula cells whose cached value is missing (workbooks saved by
# tools that never recalculate).
EVALUATE_FORMULAS: bool = os.getenv("EVALUATE_FORMULAS", "true").lower() in (
    "1",
    "true",
    "yes",
)

FORMULA_TIMEOUT_SECONDS: int = int(os.getenv("FORMULA_TIMEOUT_SECONDS", "30"))
