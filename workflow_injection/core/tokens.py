"""Placeholder token format shared by the substitution passes and the validator.

Tokens are literal markers such as ``<<<BUSINESS_NAME>>>``. Only whole,
delimiter-wrapped tokens are ever replaced; a single tokenizer pass is used
so the order of a placeholder map never matters and replaced text is never
scanned again.
"""
from __future__ import annotations

import re
from collections.abc import Mapping

TOKEN_OPEN = "<<<"
TOKEN_CLOSE = ">>>"

TOKEN_PATTERN = re.compile(r"<<<[^<>\"\\\s]+>>>")
LABEL_TOKEN_PATTERN = re.compile(r"<<<LABEL_[^<>\"\\\s]+_ID>>>")
_IDENTIFIER_PATTERN = re.compile(r"[^<>\"\\\s]+")


def make_token(identifier: str) -> str:
    if not _IDENTIFIER_PATTERN.fullmatch(identifier):
        raise ValueError(f"Invalid placeholder identifier: {identifier!r}")
    return f"{TOKEN_OPEN}{identifier}{TOKEN_CLOSE}"


def is_token(value: str) -> bool:
    return bool(TOKEN_PATTERN.fullmatch(value))


def is_label_token(value: str) -> bool:
    return bool(LABEL_TOKEN_PATTERN.fullmatch(value))


def find_tokens(text: str) -> list[str]:
    """Distinct tokens in first-seen order."""
    return list(dict.fromkeys(TOKEN_PATTERN.findall(text)))


def replace_tokens(text: str, mapping: Mapping[str, str]) -> str:
    """Replace every occurrence of every mapped token; unmapped tokens are kept."""
    if not mapping or TOKEN_OPEN not in text:
        return text

    def _substitute(match: re.Match[str]) -> str:
        token = match.group(0)
        return mapping.get(token, token)

    return TOKEN_PATTERN.sub(_substitute, text)
