"""GLOBEBOARD FILE PURPOSE
Purpose: opaque identifier and API key generation.
Hot path: no (create paths only).
Feature flags: none.
Failure mode: none (CSPRNG backed).
"""

from __future__ import annotations

import secrets
import string

ID_LENGTH = 20
API_KEY_LENGTH = 20

_ALPHABET = string.ascii_letters + string.digits


def generate_uid(n: int = ID_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(n))


def generate_api_key(n: int = API_KEY_LENGTH) -> str:
    return f"sk-{generate_uid(n)}"
