"""Second substitution pass binding provider label/folder ids to label tokens.

Templates route mail with tokens such as ``<<<LABEL_URGENT_ID>>>``. A user's
label names map onto those tokens by upper-casing and replacing whitespace and
path separators with underscores, so ``Manager/John Smith`` becomes
``<<<LABEL_MANAGER_JOHN_SMITH_ID>>>``. Tokens without a matching label are
left in place for the validator to report.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from workflow_injection.core.sanitize import escape_json_string, neutralize_tokens, strip_control_characters
from workflow_injection.core.tokens import make_token, replace_tokens

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s/\\]+")
_TOKEN_UNSAFE = re.compile(r"[<>\"]")


def label_token(label_name: str) -> str:
    name = _TOKEN_UNSAFE.sub("", label_name.strip())
    name = _SEPARATORS.sub("_", name).strip("_").upper()
    if not name:
        raise ValueError(f"Label name {label_name!r} cannot form a placeholder")
    return make_token(f"LABEL_{name}_ID")


def label_tokens(label_map: Mapping[str, str]) -> dict[str, str]:
    """Label token -> raw label id. Later labels win when two names share a token.

    Names made only of separators or token delimiters are skipped with a warning.
    """
    tokens: dict[str, str] = {}
    for label_name, label_id in label_map.items():
        if not label_name or not label_name.strip() or label_id is None:
            continue
        try:
            token = label_token(label_name)
        except ValueError as exc:
            logger.warning("Skipping label: %s", exc)
            continue
        tokens[token] = neutralize_tokens(strip_control_characters(label_id))
    return tokens


def inject_label_ids(workflow_text: str, label_map: Mapping[str, str], *, escape: bool = True) -> str:
    tokens = label_tokens(label_map)
    if escape:
        tokens = {token: escape_json_string(label_id) for token, label_id in tokens.items()}
    return replace_tokens(workflow_text, tokens)
