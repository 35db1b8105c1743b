from __future__ import annotations

import json
import logging

import pytest

from workflow_injection.services.label_injector import inject_label_ids, label_token, label_tokens


@pytest.mark.parametrize(
    ("label_name", "token"),
    [
        ("URGENT", "<<<LABEL_URGENT_ID>>>"),
        ("  sales ", "<<<LABEL_SALES_ID>>>"),
        ("Manager/John Smith", "<<<LABEL_MANAGER_JOHN_SMITH_ID>>>"),
        ("Suppliers\\Pool  Corp", "<<<LABEL_SUPPLIERS_POOL_CORP_ID>>>"),
        ('Banking/"Invoices"', "<<<LABEL_BANKING_INVOICES_ID>>>"),
    ],
)
def test_label_token_canonical_form(label_name, token):
    assert label_token(label_name) == token


def test_label_token_requires_a_name():
    with pytest.raises(ValueError):
        label_token(" / ")


def test_label_tokens_skip_blank_names():
    assert label_tokens({"": "Label_1", "  ": "Label_2", "MISC": "Label_3"}) == {"<<<LABEL_MISC_ID>>>": "Label_3"}


def test_label_tokens_skip_names_that_cannot_form_a_token(caplog):
    with caplog.at_level(logging.WARNING):
        tokens = label_tokens({"/": "Label_1", "<>": "Label_2", "\\": "Label_3", "MISC": "Label_4"})

    assert tokens == {"<<<LABEL_MISC_ID>>>": "Label_4"}
    assert caplog.text.count("Skipping label") == 3


def test_inject_label_ids_replaces_mapped_tokens_only():
    text = json.dumps({"a": "<<<LABEL_URGENT_ID>>>", "b": ["<<<LABEL_SALES_ID>>>"]})
    result = inject_label_ids(text, {"urgent": 'Label_"1"'})

    assert json.loads(result) == {"a": 'Label_"1"', "b": ["<<<LABEL_SALES_ID>>>"]}


def test_inject_label_ids_without_escaping():
    assert inject_label_ids("<<<LABEL_MISC_ID>>>", {"MISC": 'a"b'}, escape=False) == 'a"b'


def test_label_ids_cannot_introduce_tokens():
    result = inject_label_ids("<<<LABEL_MISC_ID>>>", {"MISC": "<<<CLIENT_ID>>>"}, escape=False)
    assert result == "<<CLIENT_ID>>"
