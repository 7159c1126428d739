"""
services/extraction_service.py
------------------------------
Text extraction for apartment documents (AWS Textract) and the heuristic
parser that turns the raw text into apartment fields.

The parsed values are suggestions shown next to the document; they are
never written onto the apartment itself.
"""

import re
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from estate_crm.core.config import settings
from estate_crm.core.errors import ExternalServiceError
from estate_crm.core.logging import get_logger

logger = get_logger(__name__)

EXTRACTED_NOTE = "Date extrase automat din document"
UPLOADED_NOTE = "Document încărcat cu succes."
EXTRACTION_FAILED_NOTE = (
    "Document încărcat cu succes, dar extragerea automată a datelor a eșuat."
)

_APARTMENT_NUMBER = re.compile(r"(?:ap(?:artament)?\.?\s*)?([A-Z]?\d+[A-Z]?)", re.IGNORECASE)
_ROOMS = re.compile(r"(\d+)\s*(?:camere?|rooms?|r\b)", re.IGNORECASE)
_AREA = re.compile(r"(\d+(?:\.\d+)?)\s*(?:mp|m²|sqm|m2)", re.IGNORECASE)
_PRICE = re.compile(r"(\d[\d,]*(?:\.\d{1,2})?)\s*(?:€|eur|euro|lei|ron)", re.IGNORECASE)
_NUMBER = re.compile(r"\d+")


def empty_apartment_data(note: str = UPLOADED_NOTE) -> Dict[str, Any]:
    return {"apartmentNumber": None, "rooms": None, "area": None, "price": None, "notes": note}


def parse_apartment_data(text: Optional[str]) -> Dict[str, Any]:
    """
    Pull apartment number, rooms, area (m²) and price out of free text.

    Recognised forms: "Ap. 15" / "A12", "3 camere" / "3 rooms", "75 mp" /
    "75 m²", "150,000 EUR" / "95000 lei". When none of them match, bare
    numbers are classified by magnitude (1-10 rooms, 20-200 area,
    >= 50000 price).
    """
    data = empty_apartment_data(EXTRACTED_NOTE)
    if not text:
        return data

    match = _APARTMENT_NUMBER.search(text)
    if match:
        data["apartmentNumber"] = match.group(1).upper()
    match = _ROOMS.search(text)
    if match:
        data["rooms"] = int(match.group(1))
    match = _AREA.search(text)
    if match:
        data["area"] = float(match.group(1))
    match = _PRICE.search(text)
    if match:
        data["price"] = float(match.group(1).replace(",", ""))

    if not any(data[key] for key in ("apartmentNumber", "rooms", "area", "price")):
        for raw in _NUMBER.findall(text):
            value = int(raw)
            if 1 <= value <= 10 and not data["rooms"]:
                data["rooms"] = value
            elif 20 <= value <= 200 and not data["area"]:
                data["area"] = value
            elif value >= 50000 and not data["price"]:
                data["price"] = value
    return data


def get_textract_client():
    return boto3.client(
        "textract",
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=settings.AWS_REGION,
    )


class ExtractionService:

    @staticmethod
    async def extract(key: str, bucket: Optional[str] = None) -> Dict[str, Any]:
        """
        Run Textract over an object already in the bucket.

        Returns {"rawText": str, "apartmentData": {...}}.
        Raises ExternalServiceError when Textract is unreachable or rejects
        the document.
        """
        client = get_textract_client()
        try:
            response = await run_in_threadpool(
                client.detect_document_text,
                Document={"S3Object": {"Bucket": bucket or settings.S3_BUCKET_NAME, "Name": key}},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Textract extraction failed", key=key, error=str(exc))
            raise ExternalServiceError("Text extraction failed") from exc

        lines = [
            block.get("Text", "")
            for block in response.get("Blocks", [])
            if block.get("BlockType") == "LINE"
        ]
        raw_text = "\n".join(lines)
        logger.info("Textract extraction finished", key=key, lines=len(lines))
        return {"rawText": raw_text, "apartmentData": parse_apartment_data(raw_text)}
