from .csv_export import export_b2b_csv, export_hsn_csv, export_rate_summary_csv, export_report_csv
from .json_export import export_json, report_envelope
from .workbook import GSTR1_SHEETS, build_workbook, export_report_xlsx

__all__ = [
    "export_b2b_csv",
    "export_hsn_csv",
    "export_rate_summary_csv",
    "export_report_csv",
    "export_json",
    "report_envelope",
    "GSTR1_SHEETS",
    "build_workbook",
    "export_report_xlsx",
]
