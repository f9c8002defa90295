"""
Navigation and reference data shared with the public pages.
"""

from __future__ import annotations

SITE_TITLE = "የአቃቂ ቃሊቲ ክፍለ ከተማ ብልጽግና ፓርቲ ሴቶች ክንፍ"

NAV_LINKS = [
    {"path": "/", "label": "መነሻ"},
    {"path": "/abalat-mzgeba", "label": "የአባላት ምዝገባ"},
    {"path": "/qreta", "label": "ጥቆማ"},
    {"path": "/projects", "label": "ተግባራት"},
    {
        "path": "/sle-egna",
        "label": "ስለ እኛ",
        "children": [
            {"path": "/sle-egna", "label": "ስለ እኛ መረጃ"},
            {"path": "/documents", "label": "ሰነዶች"},
        ],
    },
    {"path": "/contact", "label": "አግኙን"},
]

ADMIN_NAV_LINKS = [
    {"path": "/admin/dashboard", "label": "ዳሽቦርድ"},
    {"path": "/admin/qreta", "label": "ጥቆማዎች"},
    {"path": "/admin/abalat", "label": "አባላት"},
    {"path": "/admin/membership-requests", "label": "የአባልነት ጥያቄዎች"},
    {"path": "/admin/reports", "label": "ሪፖርቶች"},
    {"path": "/admin/settings", "label": "ቅንብሮች"},
]
