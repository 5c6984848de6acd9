"""Input validation for identifiers that end up in dynamically built SQL."""

import re

# Plain SQL identifier: letter or underscore, then letters/digits/underscores
SQL_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def validate_sql_identifier(value: str, kind: str = "identifier") -> str:
    """
    Validate a table or column name supplied by workflow configuration.

    Values are always bound as parameters; identifiers cannot be, so they are
    restricted to a conservative character set instead.
    """
    if not isinstance(value, str) or not SQL_IDENTIFIER_PATTERN.match(value):
        raise ValueError(f"Invalid {kind} name: {value!r}")
    return value
