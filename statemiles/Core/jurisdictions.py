# statemiles/Core/jurisdictions.py
"""
IFTA jurisdictions (US states and Canadian provinces) a crossing can enter.
"""

from typing import Dict, Optional


JURISDICTIONS: Dict[str, str] = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    # Canadian provinces
    "AB": "Alberta",
    "BC": "British Columbia",
    "MB": "Manitoba",
    "NB": "New Brunswick",
    "NL": "Newfoundland",
    "NS": "Nova Scotia",
    "ON": "Ontario",
    "PE": "Prince Edward Island",
    "QC": "Quebec",
    "SK": "Saskatchewan",
}


def is_known_jurisdiction(code: Optional[str]) -> bool:
    return bool(code) and code.upper() in JURISDICTIONS


def resolve_state_name(code: str, state_name: Optional[str] = None) -> str:
    """
    Display name for a jurisdiction code.

    An explicit state_name wins; otherwise the table is consulted and the
    code itself is the last resort.

    Examples:
        >>> resolve_state_name("TX")
        'Texas'
        >>> resolve_state_name("TX", "Tejas")
        'Tejas'
        >>> resolve_state_name("ZZ")
        'ZZ'
    """
    if state_name:
        return state_name
    return JURISDICTIONS.get(code.upper(), code)
