from .builder import build_report
from .gstr1 import B2CL_THRESHOLD, build_gstr1, classify
from .gstr3b import build_gstr3b
from .hsn_summary import build_hsn_list, build_hsn_summary
from .tax_summary import build_tax_summary
from .uqc import load_uqc_map, uqc_for_unit

__all__ = [
    "build_report",
    "B2CL_THRESHOLD",
    "build_gstr1",
    "classify",
    "build_gstr3b",
    "build_hsn_list",
    "build_hsn_summary",
    "build_tax_summary",
    "load_uqc_map",
    "uqc_for_unit",
]
