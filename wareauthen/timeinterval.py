# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
timeinterval

Convert duration strings like ``15m`` or ``+1y`` into seconds.  Is not
exactly about months or years (leap years in particular).

Accepts (s)econd, (m)inute, (h)our, (d)ay, (w)eek, (M)onth, (y)ear;
note that the suffixes are case sensitive (``m`` is a minute, ``M`` a
month).  A value without a suffix is a number of seconds and must be
whole.
"""

import re

second = 1
minute = second*60
hour = minute*60
day = hour*24
week = day*7
month = day*30
year = day*365
time_values = {
    's': second,
    'm': minute,
    'h': hour,
    'd': day,
    'w': week,
    'M': month,
    'y': year,
    }

time_re = re.compile(r'^([+-]?(?:\d+|\d*\.\d*))([smhdwMy]?)$')


def time_to_seconds(value):
    """
    Converts a duration into a whole number of seconds, or returns
    None if the value is not a valid duration::

        180    -- 180 seconds
        '180s' -- 180 seconds
        '2m'   -- 2 minutes
        '1.5h' -- 5400 seconds
        '3M'   -- 3 months (of 30 days)

    Fractions are only allowed with a unit larger than a second.
    """
    if value is None or isinstance(value, bool):
        return None
    match = time_re.match(str(value))
    if match is None:
        return None
    number, unit = match.groups()
    if '.' in number:
        if number.lstrip('+-') == '.':
            return None
        number = float(number)
        if unit in ('', 's') and number != int(number):
            return None
    else:
        number = int(number)
    return int(number * time_values.get(unit or 's'))

__all__ = ['time_to_seconds', 'time_values']
