"""
Turns an incoming POST /submit-booking request into a submission dict
and an optional in-memory attachment, enforcing the upload limits
before anything is stored or mailed.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request
from starlette.datastructures import FormData, UploadFile

from app.config.settings import Settings
from app.models.booking import Attachment, Submission
from app.services.field_classifier import EXCLUDED_KEYS
from app.utils.errors import SubmissionValidationError

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _stringify(value: Any) -> Any:
    if isinstance(value, list):
        return [_stringify_scalar(item) for item in value]
    return _stringify_scalar(value)


def _stringify_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


async def _read_upload(upload: UploadFile, settings: Settings) -> Attachment:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise SubmissionValidationError("Only PDF files are allowed")

    size = getattr(upload, "size", None)
    if size is not None and size > settings.MAX_UPLOAD_BYTES:
        raise SubmissionValidationError("File too large")

    content = await upload.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise SubmissionValidationError("File too large")

    return Attachment(
        filename=upload.filename or "attachment.pdf",
        content_type=content_type,
        content=content,
    )


async def _parse_form(form: FormData, settings: Settings) -> Tuple[Submission, Optional[Attachment]]:
    fields: Dict[str, List[str]] = {}
    multi_keys = set()
    uploads: List[UploadFile] = []

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            # an empty <input type="file"> still posts a nameless part
            if not value.filename and not value.size:
                continue
            if key != settings.UPLOAD_FIELD_NAME:
                raise SubmissionValidationError(f"Unexpected file field: {key}")
            uploads.append(value)
            continue
        # name="equipment[]" is how browsers post multi-selects
        if key.endswith("[]"):
            key = key[:-2]
            multi_keys.add(key)
        fields.setdefault(key, []).append(value)

    if len(uploads) > 1:
        raise SubmissionValidationError("Only one file may be uploaded")

    submission: Submission = {
        key: values if (len(values) > 1 or key in multi_keys) else values[0]
        for key, values in fields.items()
    }
    attachment = await _read_upload(uploads[0], settings) if uploads else None
    return submission, attachment


async def _parse_json(request: Request) -> Submission:
    try:
        payload = await request.json()
    except ValueError:
        raise SubmissionValidationError("Request body is not valid JSON")
    if not isinstance(payload, dict):
        raise SubmissionValidationError("Request body must be a JSON object")
    return {str(key): _stringify(value) for key, value in payload.items()}


async def parse_submission(request: Request, settings: Settings) -> Tuple[Submission, Optional[Attachment]]:
    """Read the request body as form data or JSON"""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        try:
            return await _parse_form(form, settings)
        finally:
            await form.close()
    if content_type == "application/json":
        return await _parse_json(request), None
    raise SubmissionValidationError("Unsupported content type")


def build_record(submission: Submission, attachment: Optional[Attachment] = None) -> Dict[str, Any]:
    """Booking record to persist: reserved keys stripped, file metadata added if uploaded"""
    record = {key: value for key, value in submission.items() if key not in EXCLUDED_KEYS}
    if attachment is not None:
        record["file"] = attachment.metadata.model_dump()
    return record
