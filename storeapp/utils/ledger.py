"""
Running-balance ledgers built from append-only rows.

Customer ledger: sales are debits (customer owes), payments are credits.
Vendor ledger: purchases are credits (store owes), payments are debits.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional
import csv
import io

from storeapp.schemas.common import LedgerEntry, LedgerEntryType
from storeapp.utils.dates import as_naive_utc
from storeapp.utils.money import to_money, ZERO


@dataclass
class LedgerRow:
    date: Optional[datetime]
    reference_id: str
    type: LedgerEntryType
    description: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    sale_id: Optional[int] = None
    purchase_id: Optional[int] = None
    payment_id: Optional[int] = None

    def sort_key(self):
        # Invoices before the payments made against them on the same instant
        kind = 1 if self.type == LedgerEntryType.PAYMENT else 0
        ref = self.payment_id if kind else (self.sale_id or self.purchase_id)
        return (as_naive_utc(self.date) or datetime.min, kind, ref or 0)


def build_ledger(rows: Iterable[LedgerRow], *, balance_side: str = "debit") -> List[LedgerEntry]:
    """
    Sort rows chronologically and attach the running balance.

    balance_side="debit" grows the balance with debits (customer ledger),
    "credit" grows it with credits (vendor ledger).
    """
    balance = ZERO
    entries = []
    for row in sorted(rows, key=LedgerRow.sort_key):
        if balance_side == "debit":
            balance = to_money(balance + row.debit - row.credit)
        else:
            balance = to_money(balance + row.credit - row.debit)
        entries.append(LedgerEntry(
            date=row.date,
            reference_id=row.reference_id,
            type=row.type,
            description=row.description,
            debit=to_money(row.debit),
            credit=to_money(row.credit),
            balance=balance,
            sale_id=row.sale_id,
            purchase_id=row.purchase_id,
            payment_id=row.payment_id,
        ))
    return entries


def ledger_to_csv(entries: List[LedgerEntry]) -> io.StringIO:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Reference", "Type", "Description", "Debit", "Credit", "Balance"])
    for entry in entries:
        writer.writerow([
            entry.date.strftime("%Y-%m-%d %H:%M:%S") if entry.date else "",
            entry.reference_id,
            entry.type.value,
            entry.description,
            f"{entry.debit:.2f}",
            f"{entry.credit:.2f}",
            f"{entry.balance:.2f}",
        ])
    output.seek(0)
    return output
