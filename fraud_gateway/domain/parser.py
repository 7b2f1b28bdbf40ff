"""Regex extraction of transaction details from bank SMS and payment notifications"""

import re
from datetime import datetime

from fraud_gateway.domain.models import ParsedTransaction
from fraud_gateway.utils.time_utils import CLOCK_TIME_PATTERN, format_clock_time, format_inr

REGEX_CONFIDENCE = 60

AMOUNT_PATTERN = re.compile(r"(?:Rs\.?|INR|₹)\s*([0-9,]+(?:\.[0-9]{1,2})?)", re.IGNORECASE)
MERCHANT_PATTERNS = [
    re.compile(r"(?:to|from)\s+([A-Za-z0-9 ]+?)(?:\s+via|\s+using|\s+on|\.)", re.IGNORECASE),
    re.compile(r"paid\s+to\s+([A-Za-z0-9 ]+)", re.IGNORECASE),
    re.compile(r"received\s+from\s+([A-Za-z0-9 ]+)", re.IGNORECASE),
]
DATE_PATTERN = re.compile(r"(\d{1,2})-([A-Za-z]{3})-(\d{2})")
REFERENCE_PATTERNS = [
    re.compile(r"(?:Ref|TxnID|UPI Ref)\s*(?:No\.?)?\s*[:#]?\s*([A-Z0-9]{6,})", re.IGNORECASE),
    re.compile(r"\b([A-Z0-9]{10,})\b"),
]
BALANCE_PATTERN = re.compile(r"(?:Avl Bal|Balance)\s*:?\s*(?:Rs\.?|INR|₹)\s*([0-9,]+(?:\.[0-9]{1,2})?)", re.IGNORECASE)

# Checked in order, first hit wins
SOURCE_KEYWORDS = [
    ("upi", "UPI"),
    ("card", "Card"),
    ("netbanking", "NetBanking"),
    ("wallet", "Wallet"),
]


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))


def parse_transaction_text(text: str, now: datetime | None = None) -> ParsedTransaction:
    """
    Extract what can be found in a free-text transaction message.

    Missing fields stay None, except time which defaults to the current
    wall-clock time.

    Example:
        "Rs.500 debited from A/c XX1234 to Swiggy via UPI on 16-Jan-26 1:22 PM"
        -> amount=500.0, merchant="Swiggy", source="UPI", type="debit"
    """
    result = ParsedTransaction(confidence=REGEX_CONFIDENCE)
    lowered = text.lower()

    amount_match = AMOUNT_PATTERN.search(text)
    if amount_match:
        result.amount = _to_number(amount_match.group(1))

    for pattern in MERCHANT_PATTERNS:
        match = pattern.search(text)
        if match:
            result.merchant = match.group(1).strip()
            break

    for keyword, source in SOURCE_KEYWORDS:
        if keyword in lowered:
            result.source = source
            break

    if "debited" in lowered or "paid" in lowered:
        result.type = "debit"
    elif "credited" in lowered or "received" in lowered:
        result.type = "credit"

    date_match = DATE_PATTERN.search(text)
    if date_match:
        result.date = date_match.group(0)

    time_match = CLOCK_TIME_PATTERN.search(text)
    if time_match:
        result.time = time_match.group(0)
    else:
        result.time = format_clock_time(now or datetime.now())

    for pattern in REFERENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            result.reference = match.group(1)
            break

    balance_match = BALANCE_PATTERN.search(text)
    if balance_match:
        result.balance = _to_number(balance_match.group(1))

    return result


def is_complete(parsed: ParsedTransaction) -> bool:
    """Enough was extracted to score the transaction"""
    return bool(parsed.amount and parsed.merchant)


def format_parsed(parsed: ParsedTransaction) -> str:
    """One-line human summary, e.g. "Paid ₹500 to Swiggy via UPI at 1:22 PM" """
    parts = []

    if parsed.type:
        parts.append("Paid" if parsed.type == "debit" else "Received")

    if parsed.amount:
        parts.append(format_inr(parsed.amount))

    if parsed.merchant:
        parts.append(f"to {parsed.merchant}" if parsed.type == "debit" else f"from {parsed.merchant}")

    if parsed.source:
        parts.append(f"via {parsed.source}")

    if parsed.time:
        parts.append(f"at {parsed.time}")

    return " ".join(parts)
