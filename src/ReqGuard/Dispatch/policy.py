# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.policy",
#   "purpose": "Request dispatch policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""Request dispatch policy constants and defaults.

Defines the per-variant timeout budgets, content types, and redirect limits used
by :mod:`ReqGuard.Dispatch.dispatcher`.  Values here are the defaults that
:class:`ReqGuard.Dispatch.settings.DispatchSettings` starts from; environment
overrides go through the settings model, never by editing these constants.
"""

# ============================================================================
# Timeout Budgets (seconds)
# ============================================================================

#: Form-urlencoded requests (slow legacy endpoints get the longest budget)
FORM_TIMEOUT = 180.0

#: JSON requests
JSON_TIMEOUT = 120.0

#: Raw XML requests
XML_TIMEOUT = 120.0


# ============================================================================
# Content Types
# ============================================================================

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

JSON_CONTENT_TYPE = "application/json"

XML_CONTENT_TYPE = "text/xml; charset=utf-8"

#: Accept header sent by the form and JSON variants
DEFAULT_ACCEPT = "application/json"


# ============================================================================
# Methods
# ============================================================================

#: Used when a form descriptor leaves ``method`` empty
FORM_DEFAULT_METHOD = "GET"

#: Used when a JSON descriptor leaves ``method`` empty
JSON_DEFAULT_METHOD = "POST"

#: XML requests ignore any caller choice
XML_METHOD = "POST"


# ============================================================================
# Redirects & Security
# ============================================================================

#: Follow redirects automatically (credentials are dropped on cross-origin hops)
FOLLOW_REDIRECTS = True

#: Maximum number of redirect hops before the request fails
MAX_REDIRECTS = 10

#: Require TLS certificate verification
TLS_VERIFY_ENABLED = True

#: Minimum ``auth`` length before basic credentials are attached
MIN_AUTH_LENGTH = 2


__all__ = [
    "FORM_TIMEOUT",
    "JSON_TIMEOUT",
    "XML_TIMEOUT",
    "FORM_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "XML_CONTENT_TYPE",
    "DEFAULT_ACCEPT",
    "FORM_DEFAULT_METHOD",
    "JSON_DEFAULT_METHOD",
    "XML_METHOD",
    "FOLLOW_REDIRECTS",
    "MAX_REDIRECTS",
    "TLS_VERIFY_ENABLED",
    "MIN_AUTH_LENGTH",
]
