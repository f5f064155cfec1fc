"""ULID identifiers used for every primary key and id path parameter."""

import ulid

# Crockford base32, 26 chars; excludes I, L, O and U.
ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def generate_ulid() -> str:
    return str(ulid.ULID())
