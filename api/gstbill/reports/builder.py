import logging
from typing import Any, Dict, Optional, Sequence

from ..engine.enums import ReportKind
from .common import check_range
from .gstr1 import build_gstr1
from .gstr3b import build_gstr3b
from .hsn_summary import build_hsn_summary
from .tax_summary import build_tax_summary

logger = logging.getLogger(__name__)


def build_report(
    report_kind: Any,
    documents: Sequence[Dict[str, Any]],
    start_date: Any,
    end_date: Any,
    purchases: Optional[Sequence[Dict[str, Any]]] = None,
    sales_returns: Optional[Sequence[Dict[str, Any]]] = None,
    purchase_returns: Optional[Sequence[Dict[str, Any]]] = None,
    uqc_map: Optional[Dict] = None,
) -> Dict[str, Any]:
    """
    Build one statutory report over the invoices in ``documents``.

    Pure: inputs are never mutated and the same inputs always produce the
    same payload. Raises ConfigurationError for an unknown kind and
    ValidationError for a missing or inverted date range.
    """
    kind = ReportKind.coerce(report_kind)
    start, end = check_range(start_date, end_date)

    if kind is ReportKind.GSTR1:
        data = build_gstr1(documents, start, end, uqc_map=uqc_map)
    elif kind is ReportKind.GSTR3B:
        data = build_gstr3b(documents, purchases, start, end, sales_returns, purchase_returns)
    elif kind is ReportKind.TAX_SUMMARY:
        data = build_tax_summary(documents, purchases, start, end, sales_returns, purchase_returns)
    else:
        data = build_hsn_summary(documents, start, end, uqc_map=uqc_map)

    logger.debug("Built %s report for %s..%s", kind.value, start, end)
    return data
