"""POST /v1/transactions/parse - Extract transaction fields from SMS text"""

from fastapi import APIRouter

from fraud_gateway.api.v1.schemas import ParseRequest, ParseResponse
from fraud_gateway.domain.parser import format_parsed, is_complete, parse_transaction_text

router = APIRouter()


@router.post("/transactions/parse", response_model=ParseResponse)
def parse_transaction(request_body: ParseRequest):
    """
    Parse a bank SMS or payment notification.

    Returns:
        Extracted fields, whether enough was found to score the
        transaction, and a one-line summary
    """
    parsed = parse_transaction_text(request_body.text)
    return ParseResponse.from_domain(parsed, is_complete(parsed), format_parsed(parsed))
