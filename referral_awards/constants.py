"""
Constants for the award engine.

Time, revenue and pagination constants shared by both award models.
"""

# Average Gregorian year (365.2425 days)
SECONDS_PER_YEAR = 31_556_952

# 1 year of incremental duration = $5 of base revenue (USDC, 6 decimals)
BASE_REVENUE_CONTRIBUTION_PER_YEAR_AMOUNT = 5_000_000

# Minimum final score to qualify when the rules allow nobody to qualify
UNREACHABLE_FINAL_SCORE = float(2**53 - 1)

# Leaderboard pagination
REFERRERS_PER_LEADERBOARD_PAGE_DEFAULT = 25
REFERRERS_PER_LEADERBOARD_PAGE_MAX = 100
LEADERBOARD_PAGE_DEFAULT = 1
