"""
Google Sheets ledger for the finance tracker.
Appends one row per transaction and builds the monthly summary from the rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

import gspread
from google.oauth2.credentials import Credentials

HEADERS = ["Date", "Time", "Amount", "Category", "Notes"]
OTHERS = "Others"


@dataclass
class MonthlySummary:
    by_category: dict = field(default_factory=dict)
    total: Decimal = Decimal("0")


def _row_amount(raw):
    try:
        amount = Decimal(str(raw).replace(",", "").strip())
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def summarize_rows(rows, month_key):
    """Total rows whose date starts with ``month_key`` (``YYYY-MM``), per category."""
    summary = MonthlySummary()
    for row in rows:
        if not row or not str(row[0]).startswith(month_key):
            continue
        amount = _row_amount(row[2]) if len(row) > 2 else Decimal("0")
        category = str(row[3]).strip() if len(row) > 3 else ""
        category = category or OTHERS
        summary.by_category[category] = summary.by_category.get(category, Decimal("0")) + amount
        summary.total += amount
    return summary


class Ledger:
    """Transactions worksheet, reached with a bearer token from a TokenCache."""

    def __init__(self, sheet_id, token_cache, sheet_name="Transactions",
                 authorize=gspread.authorize, clock=datetime.now):
        self.sheet_id = sheet_id
        self.sheet_name = sheet_name
        self._tokens = token_cache
        self._authorize = authorize
        self._clock = clock

    def _spreadsheet(self):
        if not self.sheet_id:
            raise RuntimeError("GOOGLE_SHEET_ID not configured")
        token = self._tokens.get_access_token()
        client = self._authorize(Credentials(token))
        return client.open_by_key(self.sheet_id)

    def _range(self, cells):
        return f"{self.sheet_name}!{cells}"

    def setup_sheet_headers(self):
        """Write the header row if row 1 is empty."""
        try:
            spreadsheet = self._spreadsheet()
            first_row = spreadsheet.values_get(self._range("A1:E1")).get("values", [])
            if not first_row:
                spreadsheet.values_update(
                    self._range("A1:E1"),
                    params={"valueInputOption": "RAW"},
                    body={"values": [HEADERS]},
                )
                print(f"✅ Wrote headers to '{self.sheet_name}'")
            return True
        except Exception as e:
            print(f"❌ Sheet setup error: {e}")
            return False

    def append_transaction(self, amount, category, notes="", is_reversal=False):
        """Append one row; a reversal is stored as a negative amount."""
        signed = -amount if is_reversal else amount
        now = self._clock()
        row = [
            now.strftime("%Y-%m-%d"),
            now.strftime("%H:%M"),
            str(signed),
            category,
            notes or "",
        ]
        try:
            self._spreadsheet().values_append(
                self._range("A:E"),
                params={"valueInputOption": "USER_ENTERED"},
                body={"values": [row]},
            )
            print(f"✅ Transaction synced to Google Sheets: {row}")
            return True
        except Exception as e:
            print(f"❌ Sync error: {e}")
            return False

    def get_monthly_summary(self):
        """Per-category and net totals for the current month, or None on failure."""
        try:
            result = self._spreadsheet().values_get(self._range("A:D"))
        except Exception as e:
            print(f"❌ Summary error: {e}")
            return None
        rows = result.get("values", [])
        return summarize_rows(rows[1:], self._clock().strftime("%Y-%m"))
