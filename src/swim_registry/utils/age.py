"""Age derivation from stored birth dates"""

from datetime import date, datetime

BIRTH_DATE_FORMAT = "%Y-%m-%d"


def parse_birth_date(value: str | None) -> date | None:
    """Parse a YYYY-MM-DD birth date, returning None when empty or malformed"""
    if not value:
        return None
    try:
        return datetime.strptime(value, BIRTH_DATE_FORMAT).date()
    except ValueError:
        return None


def calculate_age(birth_date: str | None, today: date) -> int:
    """
    Whole-year age at ``today`` for a stored birth date.

    The year difference is decremented when today's day-of-year precedes the
    birth day-of-year. Day-of-year is compared rather than (month, day), so
    leap years can shift the result by one day around the birthday.
    Empty or unparseable birth dates yield 0.

    Args:
        birth_date: Stored ``date_naissance`` value
        today: Reference date

    Returns:
        Derived age in years
    """
    born = parse_birth_date(birth_date)
    if born is None:
        return 0

    age = today.year - born.year
    if today.timetuple().tm_yday < born.timetuple().tm_yday:
        age -= 1
    return age
