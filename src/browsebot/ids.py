"""Identifier helpers."""

import random
import string
from uuid import uuid4

_TOOL_CALL_ID_ALPHABET = string.ascii_letters + string.digits
TOOL_CALL_ID_LENGTH = 9


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def new_tool_call_id() -> str:
    """Nine alphanumeric characters, the shape Mistral accepts for ``tool_call_id``.

    Not collision-checked; ids only pair a call with its response inside one request.
    """
    return "".join(random.choices(_TOOL_CALL_ID_ALPHABET, k=TOOL_CALL_ID_LENGTH))
