"""
Observation dates used for each simulated year.

Every year is observed once, on its first trading day. Known first trading
days are tabulated; other years fall back to the first weekday on or after
January 2, which skips New Year's Day but not every exchange holiday.
"""

from datetime import date, timedelta


START_OF_YEAR_DATES: dict[int, date] = {
    1996: date(1996, 1, 2),
    1997: date(1997, 1, 7),
    1998: date(1998, 1, 6),
    1999: date(1999, 1, 5),
    2000: date(2000, 1, 4),
    2001: date(2001, 1, 2),
    2002: date(2002, 1, 2),
    2003: date(2003, 1, 7),
    2004: date(2004, 1, 6),
    2005: date(2005, 1, 4),
    2006: date(2006, 1, 3),
    2007: date(2007, 1, 3),
    2008: date(2008, 1, 2),
    2009: date(2009, 1, 6),
    2010: date(2010, 1, 5),
    2011: date(2011, 1, 4),
    2012: date(2012, 1, 3),
    2013: date(2013, 1, 2),
    2014: date(2014, 1, 7),
    2015: date(2015, 1, 6),
    2016: date(2016, 1, 5),
    2017: date(2017, 1, 3),
    2018: date(2018, 1, 2),
    2019: date(2019, 1, 2),
    2020: date(2020, 1, 7),
    2021: date(2021, 1, 5),
    2022: date(2022, 1, 4),
    2023: date(2023, 1, 3),
    2024: date(2024, 1, 2),
    2025: date(2025, 1, 7),
}


def year_start_date(year: int) -> date:
    """
    Return the observation date for ``year``.

    Args:
        year: Calendar year.

    Returns:
        Tabulated first trading day, or the first weekday on/after January 2.

    Examples:
        >>> year_start_date(2014)
        datetime.date(2014, 1, 7)
        >>> year_start_date(2027)
        datetime.date(2027, 1, 4)
    """
    known = START_OF_YEAR_DATES.get(year)
    if known is not None:
        return known

    candidate = date(year, 1, 2)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def years_in_range(start_year: int, end_year: int) -> list[int]:
    """Return every year from start_year to end_year inclusive."""
    return list(range(start_year, end_year + 1))
