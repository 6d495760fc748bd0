"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAYMENT_FAILURE_RATE = 0.1
DEFAULT_TOP_N = 3
MIN_PASSWORD_LENGTH = 6
MIN_RATING = 1
MAX_RATING = 5

QR_BOX_SIZE = 10
QR_BORDER = 2

# Supabase URLs that mean "no real project configured".
OFFLINE_URL_MARKERS = ("demo.supabase.co", "your_supabase_project_url_here")
