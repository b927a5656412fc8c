"""
Email rendering for booking submissions.
Pure formatting: the same (submission, audience) always renders the same output.
"""
import html
from enum import Enum
from typing import Any, Dict, List, NamedTuple

from app.services.field_classifier import (
    CONTACT_NAME_KEY,
    GROUP_ORDER,
    ClassifiedField,
    classify_submission,
    is_blank,
)

CLIENT_SIGNATURE = "Best regards,<br>The Booking Team"

WRAPPER_STYLE = "font-family: Arial, Helvetica, sans-serif; color: #222; font-size: 14px;"
HEADING_STYLE = "margin: 24px 0 8px; font-size: 16px; border-bottom: 1px solid #ddd; padding-bottom: 4px;"
TABLE_STYLE = "border-collapse: collapse; width: 100%; max-width: 640px;"
LABEL_STYLE = "padding: 4px 12px 4px 0; vertical-align: top; font-weight: bold; width: 35%;"
VALUE_STYLE = "padding: 4px 0; vertical-align: top;"


class Audience(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class RenderedEmail(NamedTuple):
    html: str
    text: str


def format_value(value: Any) -> str:
    """Lists are joined with ', ', blank list items skipped"""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if not is_blank(item))
    return str(value).strip()


def escape(value: str) -> str:
    # quote=True also covers " and '
    return html.escape(value, quote=True)


def _non_empty_groups(submission: Dict[str, Any]):
    groups = classify_submission(submission)
    return [(group, groups[group]) for group in GROUP_ORDER if groups[group]]


def render_text(submission: Dict[str, Any]) -> str:
    sections = []
    for group, fields in _non_empty_groups(submission):
        lines = [group.value.upper()]
        lines.extend(f"{field.label}: {format_value(field.value)}" for field in fields)
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def _render_table(fields: List[ClassifiedField]) -> str:
    rows = []
    for field in fields:
        value = escape(format_value(field.value)).replace("\n", "<br>")
        rows.append(
            f'<tr><td style="{LABEL_STYLE}">{escape(field.label)}</td>'
            f'<td style="{VALUE_STYLE}">{value}</td></tr>'
        )
    return f'<table style="{TABLE_STYLE}">' + "".join(rows) + "</table>"


def _intro(submission: Dict[str, Any], audience: Audience) -> str:
    if audience == Audience.CLIENT:
        name = submission.get(CONTACT_NAME_KEY)
        greeting = f"Hi {escape(format_value(name))}," if not is_blank(name) else "Hi,"
        return (
            f"<p>{greeting}</p>"
            "<p>Thank you for your booking request. We have received the "
            "following details and will get back to you shortly.</p>"
        )

    intro = "<p>A new booking request has been submitted.</p>"
    file_meta = submission.get("file")
    if isinstance(file_meta, dict) and file_meta.get("originalname"):
        intro += f"<p>Attached file: {escape(str(file_meta['originalname']))}</p>"
    return intro


def _outro(audience: Audience) -> str:
    if audience == Audience.CLIENT:
        return f"<p>{CLIENT_SIGNATURE}</p>"
    return ""


def render_html(submission: Dict[str, Any], audience: Audience) -> str:
    parts = [f'<div style="{WRAPPER_STYLE}">', _intro(submission, audience)]
    for group, fields in _non_empty_groups(submission):
        parts.append(f'<h3 style="{HEADING_STYLE}">{escape(group.value)}</h3>')
        parts.append(_render_table(fields))
    parts.append(_outro(audience))
    parts.append("</div>")
    return "".join(parts)


def render(submission: Dict[str, Any], audience: Audience) -> RenderedEmail:
    """Render the HTML and plain-text bodies of a booking email"""
    audience = Audience(audience)
    return RenderedEmail(
        html=render_html(submission, audience),
        text=render_text(submission),
    )
