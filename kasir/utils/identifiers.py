"""Identifier generation."""
import uuid


def new_id() -> str:
    """Random 128-bit identifier, hex encoded. Safe for back-to-back inserts."""
    return uuid.uuid4().hex
