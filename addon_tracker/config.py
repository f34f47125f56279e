"""
Configuration settings for the add-on tracker.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(os.environ.get("ADDON_TRACKER_HOME", Path.cwd())).expanduser()
ADDONS_DIR = Path(os.environ.get("WOW_ADDONS_DIR", PROJECT_ROOT / "AddOns")).expanduser()
MANIFEST_FILENAME = "addons.json"
LOCK_FILENAME = "addons.lock.json"
# Scratch space for downloaded archives before extraction
CACHE_DIR = PROJECT_ROOT / "addon_tracker_cache"
DOWNLOADS_DIR = CACHE_DIR / "downloads"
# Logs directory for per-run logs
LOGS_DIR = CACHE_DIR / "logs"

# Network behaviour
REQUEST_TIMEOUT = float(os.environ.get("ADDON_TRACKER_TIMEOUT", "30"))
_deadline = os.environ.get("ADDON_TRACKER_DEADLINE")
RUN_DEADLINE = float(_deadline) if _deadline else None
MAX_RETRIES = 3
RETRY_BACKOFF = 0.3
RETRY_STATUS_CODES = [429, 500, 502, 503, 504]
# Seconds to wait between two requests to the same host (0 disables)
REQUEST_DELAY = float(os.environ.get("ADDON_TRACKER_REQUEST_DELAY", "0"))
MAX_WORKERS = int(os.environ.get("ADDON_TRACKER_WORKERS", "4"))
CHUNK_SIZE = 64 * 1024

USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36'

# Only archives with this extension are ever handed to extraction
PACKAGE_EXTENSION = ".zip"

# Curse family catalogs share one page layout
CURSE_BASE_URL = "https://wow.curseforge.com"
ACE_BASE_URL = "https://wowace.com"
# Sorting by release type puts stable files ahead of alpha/beta builds on page one
CURSE_FILES_URL = "{base}/projects/{name}/files?sort=releasetype"
CURSE_LATEST_URL = "{base}/projects/{name}/files/latest"

# Tukui
TUKUI_BASE_URL = "https://www.tukui.org"
TUKUI_FLAGSHIP_ADDONS = ("elvui", "tukui")
TUKUI_UI_URL = TUKUI_BASE_URL + "/download.php?ui={name}"
TUKUI_HOMEPAGE_URL = TUKUI_BASE_URL + "/welcome.php"
TUKUI_QUICK_DOWNLOAD_PREFIX = "/downloads/{name}"
TUKUI_SEARCH_URL = TUKUI_BASE_URL + "/addons.php?search={term}"
TUKUI_ADDON_URL = TUKUI_BASE_URL + "/addons.php?id={id}"
TUKUI_DOWNLOAD_URL = TUKUI_BASE_URL + "/addons.php?download={id}"

# Timestamp formats used by the Tukui pages
TUKUI_FLAGSHIP_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
TUKUI_ADDON_DATE_FORMAT = "%b %d, %Y %H:%M:%S"
