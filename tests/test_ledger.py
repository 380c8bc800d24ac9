from datetime import datetime, timezone
from decimal import Decimal

from storeapp.schemas.common import LedgerEntryType
from storeapp.utils.ledger import LedgerRow, build_ledger, ledger_to_csv


def _rows():
    same_instant = datetime(2020, 1, 1, 10, 0)
    return [
        LedgerRow(date=same_instant, reference_id="PAY-1", type=LedgerEntryType.PAYMENT,
                  description="payment", credit=Decimal("40"), sale_id=1, payment_id=1),
        LedgerRow(date=same_instant, reference_id="INV-1", type=LedgerEntryType.SALE,
                  description="sale", debit=Decimal("100"), sale_id=1),
        LedgerRow(date=datetime(2020, 1, 2, tzinfo=timezone.utc), reference_id="INV-2",
                  type=LedgerEntryType.SALE, description="sale", debit=Decimal("10"), sale_id=2),
    ]


def test_invoice_sorts_before_payment_on_same_instant():
    entries = build_ledger(_rows())
    assert [e.reference_id for e in entries] == ["INV-1", "PAY-1", "INV-2"]
    assert [e.balance for e in entries] == [Decimal("100.00"), Decimal("60.00"), Decimal("70.00")]


def test_credit_side_balance():
    rows = [
        LedgerRow(date=datetime(2020, 1, 1), reference_id="PUR-1", type=LedgerEntryType.PURCHASE,
                  description="purchase", credit=Decimal("50"), purchase_id=1),
        LedgerRow(date=datetime(2020, 1, 3), reference_id="PAY-7", type=LedgerEntryType.PAYMENT,
                  description="payment", debit=Decimal("20"), purchase_id=1, payment_id=7),
    ]
    entries = build_ledger(rows, balance_side="credit")
    assert [e.balance for e in entries] == [Decimal("50.00"), Decimal("30.00")]


def test_ledger_csv():
    lines = ledger_to_csv(build_ledger(_rows())).getvalue().splitlines()
    assert lines[0] == "Date,Reference,Type,Description,Debit,Credit,Balance"
    assert lines[1] == "2020-01-01 10:00:00,INV-1,SALE,sale,100.00,0.00,100.00"
    assert len(lines) == 4
