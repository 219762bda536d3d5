from typing import Any, Dict, Optional, Sequence

from ..engine.enums import DocumentKind
from ..engine.rounding import money
from .common import buckets_by_rate, filter_in_range, iso, sorted_rate_dict, sum_buckets


def build_tax_summary(
    invoices: Sequence[Dict[str, Any]],
    purchases: Optional[Sequence[Dict[str, Any]]],
    start,
    end,
    sales_returns: Optional[Sequence[Dict[str, Any]]] = None,
    purchase_returns: Optional[Sequence[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Rate-wise sales and purchase tax for the period.

    Credit notes are netted off the sales side and debit notes off the
    purchase side, bucketed by the rate of the returned line. Unlike GSTR-3B
    the net liability here is not floored at zero.
    """
    sales = buckets_by_rate(filter_in_range(invoices, DocumentKind.INVOICE, start, end), DocumentKind.INVOICE)
    buckets_by_rate(
        filter_in_range(sales_returns, DocumentKind.SALES_RETURN, start, end),
        DocumentKind.SALES_RETURN,
        sign=-1,
        into=sales,
    )

    bought = buckets_by_rate(filter_in_range(purchases, DocumentKind.PURCHASE, start, end), DocumentKind.PURCHASE)
    buckets_by_rate(
        filter_in_range(purchase_returns, DocumentKind.PURCHASE_RETURN, start, end),
        DocumentKind.PURCHASE_RETURN,
        sign=-1,
        into=bought,
    )

    sales_tax = sum_buckets(sales.values()).total_tax
    purchase_tax = sum_buckets(bought.values()).total_tax
    return {
        "period": {"startDate": iso(start), "endDate": iso(end)},
        "salesTaxByRate": sorted_rate_dict(sales),
        "purchaseTaxByRate": sorted_rate_dict(bought),
        "summary": {
            "totalSalesTax": float(money(sales_tax)),
            "totalPurchaseTax": float(money(purchase_tax)),
            "netTaxLiability": float(money(sales_tax - purchase_tax)),
        },
    }
