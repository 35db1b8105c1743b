import json
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')
os.environ.setdefault('SUBSTITUTION_MODE', 'text')
os.environ.pop('TEMPLATE_SOURCE_URL', None)
os.environ.pop('DEFAULT_OPENAI_CREDENTIAL_ID', None)

from workflow_injection.integrations.template_source import TEMPLATE_DIR  # noqa: E402
from workflow_injection.schemas.business import BusinessConfig  # noqa: E402
from workflow_injection.schemas.workflow import WorkflowTemplate  # noqa: E402

ALL_LABELS = {
    "URGENT": "Label_100",
    "SALES": "Label_200",
    "SUPPORT": "Label_300",
    "MANAGER": "Label_400",
    "MISC": "Label_500",
}


@pytest.fixture
def business_payload() -> dict:
    return {
        "id": "client-42",
        "version": 3,
        "provider": "gmail",
        "business": {
            "name": "Blue Lagoon Pools",
            "emailDomain": "bluelagoonpools.com",
            "address": "12 Harbor Rd",
            "city": "Tampa",
            "state": "FL",
            "timezone": "America/New_York",
            "types": ["Pools & Spas", "Hot Tub Service"],
        },
        "contact": {"phone": "(813) 555-0100", "website": "https://bluelagoonpools.com"},
        "services": [
            {"name": "Weekly Cleaning", "price": 150, "pricingType": "Flat rate", "description": "Skim, brush and balance"},
        ],
        "rules": {
            "businessHours": {"mon_fri": "8AM-6PM", "sat": "9AM-1PM", "sun": "Closed"},
            "sla": "4 hours",
            "allowPricing": True,
        },
        "managers": [{"name": "Dana Reyes", "email": "dana@bluelagoonpools.com"}],
        "suppliers": [{"name": "PoolCorp", "email": "orders@poolcorp.com"}],
        "email_labels": dict(ALL_LABELS),
        "credentials": {"gmail": "gmail-cred-001", "openai": "openai-cred-001"},
    }


@pytest.fixture
def business_config(business_payload) -> BusinessConfig:
    return BusinessConfig.from_payload(business_payload)


def _packaged(provider: str) -> WorkflowTemplate:
    return WorkflowTemplate.model_validate(json.loads((TEMPLATE_DIR / f"{provider}.json").read_text(encoding="utf-8")))


@pytest.fixture
def gmail_template() -> WorkflowTemplate:
    return _packaged("gmail")


@pytest.fixture
def outlook_template() -> WorkflowTemplate:
    return _packaged("outlook")
