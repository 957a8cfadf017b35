"""Amount parsing for typed amounts and forwarded payment messages."""

import re
from decimal import Decimal, InvalidOperation

_MARKER = r"(?:Rs\.?|INR)"
_NUMBER = r"([\d,]+(?:\.\d{2})?)"

# A Rs/INR glued to a preceding letter only counts when the digits follow at once ("PaidRs.500", not "hours 5").
_PREFIX = r"(?:(?<![A-Za-z])" + _MARKER + r"\s*|" + _MARKER + r"(?=[\d,])|₹\s*)"
_SUFFIX = r"\s*(?:" + _MARKER + r"|₹)"

# Marker before the number wins; the second pattern is only tried if the first never matches.
AMOUNT_PATTERNS = [
    re.compile(_PREFIX + _NUMBER, re.IGNORECASE),
    re.compile(_NUMBER + _SUFFIX, re.IGNORECASE),
]

_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d+)?")


class InvalidAmountError(ValueError):
    pass


def parse_amount(text):
    """Find a currency-tagged amount like ``Rs. 1,250.00`` or ``500 INR``.

    Returns a positive Decimal, or None when nothing usable is found.
    """
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        digits = match.group(1).replace(",", "")
        try:
            amount = Decimal(digits)
        except InvalidOperation:
            return None
        return amount if amount > 0 else None
    return None


def parse_manual_amount(text):
    """Parse an amount typed in reply to the amount prompt."""
    cleaned = text.strip().replace(",", "")
    if not _PLAIN_NUMBER.fullmatch(cleaned):
        raise InvalidAmountError(f"Not a plain number: {text!r}")
    amount = Decimal(cleaned)
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive: {text!r}")
    return amount
