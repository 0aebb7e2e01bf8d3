FALSE_STRINGS = frozenset(['false', 'f', '0', 'no', 'n', 'off', ''])


def str_to_bool(text: str) -> bool:
    """
    Interpret a query-string flag.

    Case and surrounding whitespace are ignored. 'false', 'f', '0', 'no', 'n',
    'off' and the empty string are False, anything else is True.
    """
    return str(text).strip().lower() not in FALSE_STRINGS
