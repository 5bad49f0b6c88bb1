"""
Canonical configuration for Search Console lookback windows.
The snapshot keys below are persisted as-is in SC_<domain>.json files.
"""

# Lookback windows (days -> snapshot key), fetched in this order
SC_WINDOWS = {
    3: 'threeDays',
    7: 'sevenDays',
    30: 'thirtyDays',
}

# Average key per snapshot key (keyword scData)
SC_WINDOW_AVG_KEYS = {
    'threeDays': 'avgThreeDays',
    'sevenDays': 'avgSevenDays',
    'thirtyDays': 'avgThirtyDays',
}

# Daily aggregate series
STAT_WINDOW_DAYS = 30

# Window used to validate newly entered credentials
INTEGRATION_CHECK_DAYS = 3

# Search Analytics query settings
SC_ROW_LIMIT = 1000
SC_DATA_STATE = 'all'
