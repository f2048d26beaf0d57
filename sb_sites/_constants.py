"""Common literal values used across sb_sites.

These constants keep the reserved variable namespace, cache keys, and
lifecycle timings centralized so the mapper, lifecycle manager, and tests can
import the same values without drifting. Intended for internal use within the
sb_sites package.

Examples
--------
>>> from sb_sites import _constants
>>> _constants.CACHE_KEY_TEMPLATE.format(business_id="42")
'sb:42'
>>> _constants.REVERT_KEY_TEMPLATE.format(business_id="42")
'sb:revert:42'
"""

import re

VAR_PREFIX = "--sb-"
FALLBACK_SECTION_VARS = {"--sb-padding": "var(--sb-space-section)"}

CACHE_KEY_TEMPLATE = "sb:{business_id}"
REVERT_KEY_TEMPLATE = "sb:revert:{business_id}"

SECTION_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
SITE_SLUG_PATTERN = re.compile(r"^[a-z0-9-]{2,50}$")

DEFAULT_APEX_DOMAIN = "sites.example.com"
DEFAULT_THEME_VERSION = "1.1"
DEFAULT_CONFIG_VERSION = "1.0"

AUTOSAVE_DEBOUNCE_SECONDS = 2.0
POLL_INTERVAL_SECONDS = 10.0
MAX_POLL_ATTEMPTS = 30

CHARACTER_LIMITS = {
    "hero_title": 80,
    "hero_subtitle": 160,
    "content_title": 100,
    "content_body": 600,
}
