"""
GSTR-3B (monthly summary return) builder.

Outward supplies come from invoices less credit notes; input tax credit comes
from purchases less debit notes. Net liability is computed per tax head and
floored at zero: excess credit is carried forward, never paid out, and is not
set off across heads here.
"""

from typing import Any, Dict, Optional, Sequence

from ..engine.enums import DocumentKind
from ..engine.rounding import ZERO, money
from .common import TaxBucket, buckets_by_rate, filter_in_range, iso, sum_buckets

HEADS = ("cgst", "sgst", "igst", "cess")


def _net(kind: DocumentKind, docs, return_kind: DocumentKind, returns, start, end) -> TaxBucket:
    buckets = buckets_by_rate(filter_in_range(docs, kind, start, end), kind)
    buckets_by_rate(filter_in_range(returns, return_kind, start, end), return_kind, sign=-1, into=buckets)
    return sum_buckets(buckets.values())


def _section(bucket: TaxBucket) -> Dict[str, Any]:
    data = bucket.to_dict()
    data["total"] = data.pop("totalTax")
    return data


def build_gstr3b(
    invoices: Sequence[Dict[str, Any]],
    purchases: Optional[Sequence[Dict[str, Any]]],
    start,
    end,
    sales_returns: Optional[Sequence[Dict[str, Any]]] = None,
    purchase_returns: Optional[Sequence[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    output = _net(DocumentKind.INVOICE, invoices, DocumentKind.SALES_RETURN, sales_returns, start, end)
    itc = _net(DocumentKind.PURCHASE, purchases, DocumentKind.PURCHASE_RETURN, purchase_returns, start, end)

    liability = {}
    for head in HEADS:
        liability[head] = max(ZERO, getattr(output, head) - getattr(itc, head))
    net_total = sum(liability.values(), ZERO)

    return {
        "period": {"startDate": iso(start), "endDate": iso(end)},
        "outwardSupplies": _section(output),
        "itcAvailable": _section(itc),
        "netTaxLiability": dict({h: float(money(v)) for h, v in liability.items()}, total=float(money(net_total))),
        "summary": {
            "totalSales": float(money(output.taxable_value)),
            "totalPurchases": float(money(itc.taxable_value)),
            "totalOutputTax": float(money(output.total_tax)),
            "totalInputTax": float(money(itc.total_tax)),
            "netTaxPayable": float(money(net_total)),
        },
    }
