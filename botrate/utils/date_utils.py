import re

PROG = re.compile(r'^(\d+)([WwDdHhMmSs])$')
SECONDS_PER_UNIT = {
    'W': 7 * 24 * 60 * 60,
    'D': 24 * 60 * 60,
    'H': 60 * 60,
    'M': 60,
    'S': 1,
}


def get_duration(duration_str):
    """
    Parse rating period strings like '1H', '7D', '1W' into a number of seconds

    Parameters:
    -----------
    duration_str : str
        String in format numberLetter where Letter is one of:
        W/w - weeks
        D/d - days
        H/h - hours
        M/m - minutes
        S/s - seconds

    Returns:
    --------
    duration : int
    """
    match = PROG.match(duration_str)
    if not match:
        raise ValueError(f'Invalid duration format: {duration_str}')
    number = int(match.group(1))
    if number == 0:
        raise ValueError(f'Rating period must be longer than zero: {duration_str}')
    unit = match.group(2).upper()
    return number * SECONDS_PER_UNIT[unit]
