"""Identifier allocation for new records and blob names."""

import uuid


def new_identifier() -> str:
    """Return a fresh random 128-bit identifier in canonical UUID form."""
    return str(uuid.uuid4())
