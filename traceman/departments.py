"""
Department tags.

Departments arrive as numeric store codes ('1154'), lowercase names
('bakery') or canonical tags ('BAKERY'). Everything past the load layer
uses the canonical tag.
"""

from traceman.conf import get_setting


def known_departments() -> list[str]:
    codes = get_setting("DEPARTMENT_CODES")
    return list(dict.fromkeys(codes.values()))


def normalize_department(department) -> str:
    """Canonical department tag; unknown or empty values map to the default."""
    fallback = get_setting("DEFAULT_DEPARTMENT")
    if department is None:
        return fallback

    value = str(department).strip()
    if not value:
        return fallback

    codes = get_setting("DEPARTMENT_CODES")
    if value in codes:
        return codes[value]

    upper = value.upper()
    if upper in known_departments():
        return upper

    return fallback


def manager_for(department) -> str:
    managers = get_setting("DEPARTMENT_MANAGERS")
    return managers.get(normalize_department(department), "")


def country_for(department) -> str:
    countries = get_setting("DEFAULT_COUNTRY_OF_ORIGIN")
    return countries.get(normalize_department(department), "")
