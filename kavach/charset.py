"""
MIT License
Copyright (c) 2025 DarekDGB

5-bit character table used for names and PAN letters.

A-Z map to 0-25, space to 26 and the NUL terminator to 27.
Codes 28-31 are reserved.
"""

from __future__ import annotations

import string
from typing import Dict

from .errors import InvalidCharacter, MalformedRecord

CODE_BITS = 5
MAX_NAME_LENGTH = 19

SPACE = " "
NUL = "\x00"

CHARSET: Dict[str, int] = {ch: i for i, ch in enumerate(string.ascii_uppercase)}
CHARSET[SPACE] = 26
CHARSET[NUL] = 27

REVERSE_CHARSET: Dict[int, str] = {code: ch for ch, code in CHARSET.items()}

SPACE_CODE = CHARSET[SPACE]
NULL_CODE = CHARSET[NUL]


def code_for(char: str) -> int:
    try:
        return CHARSET[char]
    except KeyError:
        raise InvalidCharacter(f"Character {char!r} cannot be encoded") from None


def char_for(code: int) -> str:
    try:
        return REVERSE_CHARSET[code]
    except KeyError:
        raise MalformedRecord(f"Reserved or invalid character code: {code}") from None
