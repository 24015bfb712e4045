"""
Closed taxonomy of privacy data categories and the declarative rules
that map App Store label text onto it.

Rules are ``(pattern, canonical)`` pairs tried in order; the first
pattern that matches wins.  Subtype labels ("Precise Location",
"Device ID", "Crash Data", ...) map onto their parent category.
"""

from __future__ import annotations

import re

from fiosfon.models.privacy import BUCKET_NAMES

# ============================================================================
# Canonical categories
# ============================================================================

PURCHASES = "Purchases"
IDENTIFIERS = "Identifiers"
USAGE_DATA = "Usage Data"
DIAGNOSTICS = "Diagnostics"
CONTACT_INFO = "Contact Info"
USER_CONTENT = "User Content"
BROWSING_SEARCH_HISTORY = "Browsing/Search History"
LOCATION = "Location"
HEALTH_FITNESS = "Health & Fitness"
FINANCIAL_INFO = "Financial Info"
PHOTOS_VIDEOS = "Photos or Videos"
AUDIO_DATA = "Audio Data"
MESSAGES = "Messages"
CONTACTS = "Contacts"
SENSITIVE_INFO = "Sensitive Info"
OTHER_DATA_TYPES = "Other Data Types"

TAXONOMY: tuple[str, ...] = (
    PURCHASES,
    IDENTIFIERS,
    USAGE_DATA,
    DIAGNOSTICS,
    CONTACT_INFO,
    USER_CONTENT,
    BROWSING_SEARCH_HISTORY,
    LOCATION,
    HEALTH_FITNESS,
    FINANCIAL_INFO,
    PHOTOS_VIDEOS,
    AUDIO_DATA,
    MESSAGES,
    CONTACTS,
    SENSITIVE_INFO,
    OTHER_DATA_TYPES,
)

# ============================================================================
# Category rules (priority order)
# ============================================================================

CATEGORY_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"purchase", re.I), PURCHASES),
    (re.compile(r"identifier|\bdevice\s*id\b|\buser\s*id\b", re.I), IDENTIFIERS),
    # Performance data is a Diagnostics subtype, so it must beat Usage Data.
    (re.compile(r"diagnostic|crash|performance\s*data", re.I), DIAGNOSTICS),
    (re.compile(r"usage|product\s*interaction|advertising\s*data", re.I), USAGE_DATA),
    # "Emails or Text Messages" before the contact-info email rule.
    (re.compile(r"\bmessages?\b", re.I), MESSAGES),
    (re.compile(r"contact\s*info|e-?mail\s*address|phone\s*number|physical\s*address|^name$", re.I), CONTACT_INFO),
    (re.compile(r"^contacts?$|address\s*book", re.I), CONTACTS),
    (re.compile(r"\bphotos?\b|\bvideos?\b", re.I), PHOTOS_VIDEOS),
    (re.compile(r"audio", re.I), AUDIO_DATA),
    (re.compile(r"user\s*content|gameplay\s*content|customer\s*support", re.I), USER_CONTENT),
    (re.compile(r"browsing|search\s*history", re.I), BROWSING_SEARCH_HISTORY),
    (re.compile(r"location", re.I), LOCATION),
    (re.compile(r"health|fitness", re.I), HEALTH_FITNESS),
    (re.compile(r"financial|payment\s*info|credit\s*info", re.I), FINANCIAL_INFO),
    (re.compile(r"sensitive", re.I), SENSITIVE_INFO),
    (re.compile(r"^other\s*data(\s*types?)?$", re.I), OTHER_DATA_TYPES),
]

# ============================================================================
# Purposes
# ============================================================================

ADVERTISING = "Advertising"
DEVELOPERS_ADVERTISING = "Developer's Advertising"
PERSONALIZATION = "Personalization"
PRODUCT_PERSONALIZATION = "Product Personalization"
ANALYTICS = "Analytics"
FRAUD_PREVENTION = "Fraud Prevention"
APP_FUNCTIONALITY = "App Functionality"
OTHER_PURPOSES = "Other Purposes"

PURPOSES: tuple[str, ...] = (
    ADVERTISING,
    DEVELOPERS_ADVERTISING,
    PERSONALIZATION,
    PRODUCT_PERSONALIZATION,
    ANALYTICS,
    FRAUD_PREVENTION,
    APP_FUNCTIONALITY,
    OTHER_PURPOSES,
)

PURPOSE_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"third[-\s]*party\s*advertising|^advertising$", re.I), ADVERTISING),
    (re.compile(r"developer['’]?s\s*advertising|advertising\s*or\s*marketing", re.I), DEVELOPERS_ADVERTISING),
    (re.compile(r"product\s*personali[sz]ation", re.I), PRODUCT_PERSONALIZATION),
    (re.compile(r"^personali[sz]ation$", re.I), PERSONALIZATION),
    (re.compile(r"^analytics$", re.I), ANALYTICS),
    (re.compile(r"fraud\s*prevention", re.I), FRAUD_PREVENTION),
    (re.compile(r"app\s*functionality", re.I), APP_FUNCTIONALITY),
    (re.compile(r"^other\s*purposes$", re.I), OTHER_PURPOSES),
]

# ============================================================================
# UI noise
# ============================================================================

# Compared case-insensitively against the whole cleaned token.
NOISE_TOKENS: frozenset[str] = frozenset(
    {
        "see details",
        "details",
        "learn more",
        "privacy policy",
        "app privacy",
        "developer website",
        "app support",
        "data not collected",
        "no details provided",
        *(name.lower() for name in BUCKET_NAMES),
    }
)

MAX_TOKEN_LENGTH = 48
