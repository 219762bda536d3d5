import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..engine.enums import ReportKind


def report_envelope(
    report_kind: Any,
    data: Dict[str, Any],
    start_date: Any,
    end_date: Any,
    report_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Wrap a report payload with its type, id, generation time and period."""
    kind = ReportKind.coerce(report_kind)
    generated = generated_at or datetime.now(timezone.utc)
    return {
        "reportType": kind.title,
        "reportId": report_id or uuid.uuid4().hex,
        "generatedAt": generated.isoformat(),
        "period": {"startDate": str(start_date), "endDate": str(end_date)},
        "data": data,
    }


def export_json(envelope: Dict[str, Any]) -> str:
    """Return a pretty-printed JSON string for a report envelope."""
    return json.dumps(envelope, indent=2, ensure_ascii=False)
