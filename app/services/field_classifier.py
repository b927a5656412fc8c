"""
Field Classifier
Maps the free-form keys of a booking submission onto display groups
(Contact / Project / Equipment / Billing / Meta), gives each key a
human label and orders the fields of every group deterministically.

Classification is driven by two declarative tables:
  * LITERAL_RULES - exact key -> group, checked first
  * PREFIX_RULES  - key prefix -> group, first match wins
Keys matching neither land in Project.
"""
from enum import Enum
from typing import Any, Dict, List, NamedTuple


class FieldGroup(str, Enum):
    CONTACT = "Contact"
    PROJECT = "Project"
    EQUIPMENT = "Equipment"
    BILLING = "Billing"
    META = "Meta"


# Render order of the groups
GROUP_ORDER = [
    FieldGroup.CONTACT,
    FieldGroup.PROJECT,
    FieldGroup.EQUIPMENT,
    FieldGroup.BILLING,
    FieldGroup.META,
]

CLIENT_TIMESTAMP_KEY = "timestamp"
SERVER_TIMESTAMP_KEY = "date"
ROLE_KEY = "client_type"
CONTACT_EMAIL_KEY = "contact_email"
CONTACT_NAME_KEY = "contact_name"

# Store identifiers and raw file payloads never show up in an email
EXCLUDED_KEYS = frozenset({
    "_id",
    "id",
    "file",
    "buffer",
    "file_data",
    "file_content",
    "attachment",
})

LITERAL_RULES = {
    ROLE_KEY: FieldGroup.CONTACT,
    CLIENT_TIMESTAMP_KEY: FieldGroup.META,
    SERVER_TIMESTAMP_KEY: FieldGroup.META,
}

# Order matters: general_equipment must be tested before general_
PREFIX_RULES = [
    ("contact_", FieldGroup.CONTACT),
    ("general_equipment", FieldGroup.EQUIPMENT),
    ("general_", FieldGroup.PROJECT),
    ("billing_", FieldGroup.BILLING),
]

DEFAULT_GROUP = FieldGroup.PROJECT

PREFERRED_ORDER = {
    FieldGroup.CONTACT: [
        "contact_name",
        "contact_company",
        "contact_email",
        "contact_phone",
        ROLE_KEY,
        "contact_website",
        "contact_instagram",
    ],
    FieldGroup.PROJECT: [
        "general_project-name",
        "general_project-type",
        "general_shoot-dates",
        "general_shoot-days",
        "general_location",
        "general_crew-size",
        "general_budget",
        "general_description",
        "general_notes",
    ],
    FieldGroup.EQUIPMENT: [
        "general_equipment",
        "general_equipment-list",
        "general_equipment-pickup",
        "general_equipment-return",
        "general_equipment-notes",
    ],
    FieldGroup.BILLING: [
        "billing_name",
        "billing_company",
        "billing_email",
        "billing_address",
        "billing_zip",
        "billing_city",
        "billing_country",
        "billing_Country",
        "billing_vat",
        "billing_po-number",
    ],
    FieldGroup.META: [
        CLIENT_TIMESTAMP_KEY,
        SERVER_TIMESTAMP_KEY,
    ],
}

FIELD_LABELS = {
    "contact_name": "Name",
    "contact_company": "Company",
    "contact_email": "Email",
    "contact_phone": "Phone",
    ROLE_KEY: "I am a",
    "contact_website": "Website",
    "contact_instagram": "Instagram",
    "general_project-name": "Project Name",
    "general_project-type": "Project Type",
    "general_shoot-dates": "Shoot Dates",
    "general_shoot-days": "Shoot Days",
    "general_location": "Location",
    "general_crew-size": "Crew Size",
    "general_budget": "Budget",
    "general_description": "Description",
    "general_notes": "Notes",
    "general_equipment": "Equipment Needed",
    "general_equipment-list": "Equipment List",
    "general_equipment-pickup": "Pickup Date",
    "general_equipment-return": "Return Date",
    "general_equipment-notes": "Equipment Notes",
    "billing_name": "Billing Name",
    "billing_company": "Billing Company",
    "billing_email": "Billing Email",
    "billing_address": "Address",
    "billing_zip": "Postal Code",
    "billing_city": "City",
    "billing_country": "Country",
    "billing_Country": "Country",
    "billing_vat": "VAT Number",
    "billing_po-number": "PO Number",
    CLIENT_TIMESTAMP_KEY: "Submitted (client)",
    SERVER_TIMESTAMP_KEY: "Received (server)",
}


class ClassifiedField(NamedTuple):
    key: str
    label: str
    value: Any


def is_blank(value: Any) -> bool:
    """True for None, whitespace-only strings and lists of blank items"""
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return all(is_blank(item) for item in value)
    return str(value).strip() == ""


def classify_field(key: str) -> FieldGroup:
    """Group for a single key"""
    if key in LITERAL_RULES:
        return LITERAL_RULES[key]
    for prefix, group in PREFIX_RULES:
        if key.startswith(prefix):
            return group
    return DEFAULT_GROUP


def humanize_key(key: str) -> str:
    """Label for a key, generated from the key itself when unknown"""
    if key in FIELD_LABELS:
        return FIELD_LABELS[key]
    words = key.replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _order_keys(group: FieldGroup, keys: List[str]) -> List[str]:
    preferred = [key for key in PREFERRED_ORDER[group] if key in keys]
    rest = [key for key in keys if key not in preferred]
    return preferred + rest


def classify_submission(submission: Dict[str, Any]) -> Dict[FieldGroup, List[ClassifiedField]]:
    """
    Split a submission into ordered groups.

    Excluded keys and blank values are dropped. The result always holds
    every group in GROUP_ORDER; groups without fields map to an empty list.
    """
    encountered: Dict[FieldGroup, List[str]] = {group: [] for group in GROUP_ORDER}
    for key, value in submission.items():
        if key in EXCLUDED_KEYS or is_blank(value):
            continue
        encountered[classify_field(key)].append(key)

    return {
        group: [
            ClassifiedField(key, humanize_key(key), submission[key])
            for key in _order_keys(group, encountered[group])
        ]
        for group in GROUP_ORDER
    }
