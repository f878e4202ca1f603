"""Countries accepted on the registration form."""

COUNTRIES: dict[str, str] = {
    "US": "United States",
    "GB": "United Kingdom",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "BE": "Belgium",
    "CH": "Switzerland",
    "AT": "Austria",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "IE": "Ireland",
    "PT": "Portugal",
    "GR": "Greece",
    "LU": "Luxembourg",
    "JP": "Japan",
    "CN": "China",
    "IN": "India",
    "BR": "Brazil",
    "MX": "Mexico",
    "ZA": "South Africa",
    "AE": "United Arab Emirates",
    "SG": "Singapore",
    "KR": "South Korea",
    "NZ": "New Zealand",
}


def is_valid_country(code: str) -> bool:
    return code in COUNTRIES


def country_name(code: str) -> str:
    """Return the display name for a country code, or "" if unknown."""
    return COUNTRIES.get(code, "")
