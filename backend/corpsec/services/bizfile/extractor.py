"""AI extraction of BizFile business profiles from PDFs and images."""
import base64
import json
import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError

from corpsec.services.ai import (
    AIImage, AIRequest, AIUsage, ExtractionError, call_ai, get_best_available_model, get_model_config,
)
from corpsec.services.bizfile.types import ExtractedBizFileData
from corpsec.services.pages import extract_pdf_text

logger = logging.getLogger(__name__)

EXTRACTION_TEMPERATURE = 0.1

SYSTEM_PROMPT = """You are an expert at reading Singapore ACRA BizFile business profile documents.
Extract the company information exactly as shown in the document.

Rules:
- Dates must be formatted as YYYY-MM-DD.
- Use null for any field that is not present. Do not guess.
- Amounts are plain numbers without currency symbols or thousands separators.
- Currencies are ISO 4217 codes (e.g. SGD, USD).
- Officer roles are one of: DIRECTOR, MANAGING_DIRECTOR, ALTERNATE_DIRECTOR, SECRETARY, CEO, CFO,
  AUDITOR, LIQUIDATOR, RECEIVER, JUDICIAL_MANAGER.
- Identification types are one of: NRIC, FIN, PASSPORT, UEN, OTHER.
- Shareholder type is INDIVIDUAL or CORPORATE.
- Include ceased officers with their cessation date."""

JSON_STRUCTURE_PROMPT = """Extract the BizFile data into this JSON structure:

{
  "entityDetails": {
    "uen": "string", "name": "string", "formerName": "string|null", "dateOfNameChange": "YYYY-MM-DD|null",
    "formerNames": [{"name": "string", "effectiveFrom": "YYYY-MM-DD|null", "effectiveTo": "YYYY-MM-DD|null"}],
    "entityType": "string", "status": "string", "statusDate": "YYYY-MM-DD|null",
    "incorporationDate": "YYYY-MM-DD|null", "registrationDate": "YYYY-MM-DD|null"
  },
  "ssicActivities": {
    "primary": {"code": "string", "description": "string"},
    "secondary": {"code": "string", "description": "string"} | null
  },
  "registeredAddress": {
    "block": "string|null", "streetName": "string", "level": "string|null", "unit": "string|null",
    "buildingName": "string|null", "postalCode": "string", "effectiveFrom": "YYYY-MM-DD|null"
  },
  "mailingAddress": null,
  "paidUpCapital": {"amount": 0, "currency": "SGD"},
  "issuedCapital": {"amount": 0, "currency": "SGD"},
  "shareCapital": [{
    "shareClass": "ORDINARY", "currency": "SGD", "numberOfShares": 0, "parValue": null,
    "totalValue": 0, "isPaidUp": true, "isTreasury": false
  }],
  "treasuryShares": {"numberOfShares": 0, "currency": "SGD"} | null,
  "shareholders": [{
    "name": "string", "type": "INDIVIDUAL|CORPORATE", "identificationType": "string|null",
    "identificationNumber": "string|null", "nationality": "string|null", "placeOfOrigin": "string|null",
    "address": "string|null", "shareClass": "ORDINARY", "numberOfShares": 0,
    "percentageHeld": null, "currency": "SGD"
  }],
  "officers": [{
    "name": "string", "role": "DIRECTOR", "identificationType": "string|null",
    "identificationNumber": "string|null", "nationality": "string|null", "address": "string|null",
    "appointmentDate": "YYYY-MM-DD|null", "cessationDate": "YYYY-MM-DD|null"
  }],
  "auditor": {"name": "string", "address": "string|null", "appointmentDate": "YYYY-MM-DD|null"} | null,
  "financialYear": {"endDay": 31, "endMonth": 12} | null,
  "homeCurrency": "SGD",
  "compliance": {
    "lastAgmDate": "YYYY-MM-DD|null", "lastArFiledDate": "YYYY-MM-DD|null",
    "accountsDueDate": "YYYY-MM-DD|null", "fyeAsAtLastAr": "YYYY-MM-DD|null"
  },
  "charges": [{
    "chargeNumber": "string", "chargeType": "string|null", "description": "string|null",
    "chargeHolderName": "string", "amountSecured": null, "amountSecuredText": "string|null",
    "currency": "string|null", "registrationDate": "YYYY-MM-DD|null", "dischargeDate": "YYYY-MM-DD|null"
  }],
  "documentMetadata": {"receiptNo": "string|null", "receiptDate": "YYYY-MM-DD|null"}
}

Respond with the JSON object only."""


@dataclass
class BizFileExtractionResult:
    """Parsed extraction with the model and token usage behind it."""
    data: ExtractedBizFileData
    model_used: str
    provider_used: str
    usage: AIUsage


def build_user_prompt(additional_context: str | None = None, document_text: str | None = None) -> str:
    prompt = JSON_STRUCTURE_PROMPT
    if document_text:
        prompt = f"Document text:\n\n{document_text}\n\n{prompt}"
    if additional_context and additional_context.strip():
        prompt += f"\n\nAdditional context from user:\n{additional_context.strip()}"
    return prompt


def clean_json_response(content: str) -> str:
    """Strip markdown fences and keep the outermost JSON object."""
    text = content.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_extraction_response(content: str) -> ExtractedBizFileData:
    """Validate the AI output as BizFile data."""
    try:
        raw = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse extraction JSON: {e}")
        logger.debug(f"Raw response: {content[:500]}")
        raise ExtractionError("Failed to parse AI extraction response. The AI returned invalid JSON.") from e
    
    entity = raw.get("entityDetails") if isinstance(raw, dict) else None
    if not isinstance(entity, dict) or not entity.get("uen") or not entity.get("name"):
        raise ExtractionError("AI extraction missing required fields (UEN or company name)")
    
    try:
        return ExtractedBizFileData.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Extraction JSON failed validation: {e}")
        raise ExtractionError(f"AI extraction returned unexpected data: {e.error_count()} invalid field(s)") from e


def _resolve_model(model_id: str | None) -> str:
    if model_id:
        get_model_config(model_id)
        return model_id
    best = get_best_available_model()
    if not best:
        raise ExtractionError(
            "No AI provider configured. Set one of: OPENAI_API_KEY, ANTHROPIC_API_KEY, or GOOGLE_AI_API_KEY"
        )
    return best


async def extract_bizfile_with_vision(
    file_bytes: bytes,
    mime_type: str,
    model_id: str | None = None,
    additional_context: str | None = None,
) -> BizFileExtractionResult:
    """Send the file to a vision model and parse the structured result."""
    model = _resolve_model(model_id)
    logger.info(f"Extracting BizFile with {model} ({len(file_bytes)} bytes, {mime_type})")
    
    response = await call_ai(AIRequest(
        model=model,
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_user_prompt(additional_context),
        images=[AIImage(base64=base64.b64encode(file_bytes).decode("ascii"), mime_type=mime_type)],
        json_mode=True,
        temperature=EXTRACTION_TEMPERATURE,
    ))
    data = parse_extraction_response(response.content)
    logger.info(f"Extracted BizFile for UEN {data.entity_details.uen}")
    return BizFileExtractionResult(data, response.model, response.provider, response.usage)


async def extract_bizfile_from_text(
    pdf_bytes: bytes,
    model_id: str | None = None,
    additional_context: str | None = None,
) -> BizFileExtractionResult:
    """Text-only extraction from the PDF text layer."""
    text = extract_pdf_text(pdf_bytes)
    if not text.strip():
        raise ExtractionError("PDF has no text layer; use vision extraction")
    model = _resolve_model(model_id)
    logger.info(f"Extracting BizFile text with {model} ({len(text)} chars)")
    
    response = await call_ai(AIRequest(
        model=model,
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_user_prompt(additional_context, document_text=text),
        json_mode=True,
        temperature=EXTRACTION_TEMPERATURE,
    ))
    data = parse_extraction_response(response.content)
    return BizFileExtractionResult(data, response.model, response.provider, response.usage)
