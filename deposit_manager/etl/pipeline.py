"""
Report Pipeline Orchestrator - Coordinates Extract, Normalize, Aggregate and DQ.

Flow:
    Deposit:                 Extract → Normalize → (Expiry Filter on demand)
    Revenue:                 Extract → Normalize → Aggregate → Totals → Checksum
    Deposit Purchase/Cash-In: Extract → Normalize → Aggregate → Totals

Each run is a pure function of (rows, report type). Results are fresh objects;
the ReportBook only swaps in a new result once a run has succeeded.
"""
import logging
import time
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .aggregate import get_aggregator
from .dq import RevenueChecksumEngine
from .extract import ParserFactory, Source
from .filter import DepositExpiryFilter, sort_deposits
from .schema import PipelineResult, RawRow, ReportType, RowStats
from .transform import RowNormalizer

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Error processing file. Please ensure it's a valid Excel file with the correct format."
ERROR_MESSAGES = {
    ReportType.CASHIN: "Error processing file. Please ensure it's a valid Cash-In Excel file with the correct format.",
}

Progress = Tuple[int, str, Optional[PipelineResult]]


class ReportPipeline:
    """
    Runs one uploaded batch through the pipeline for its report type.
    """

    def __init__(self, normalizer: Optional[RowNormalizer] = None,
                 expiry_filter: Optional[DepositExpiryFilter] = None):
        self.normalizer = normalizer or RowNormalizer()
        self.expiry_filter = expiry_filter or DepositExpiryFilter()

    def process(self, source: Source, report_type: str, file_type: str = "xlsx",
                source_file: str = "") -> Iterator[Progress]:
        """
        Process an uploaded spreadsheet.
        Yields (percentage, message, result_dict); only the last tuple has a result.
        """
        start_time = time.time()

        try:
            report_type = ReportType(report_type)
        except ValueError:
            yield 0, f"Error: Unknown report type: {report_type}", {
                "success": False,
                "report_type": str(report_type),
                "error": f"Unknown report type: {report_type}",
                "stats": {},
            }
            return

        try:
            # ─── 1. Extract (0-30%) ───
            yield 10, "Reading spreadsheet...", None
            parser = ParserFactory.get_parser(file_type)
            payload = parser.parse(source, source_file=source_file)
            yield 30, f"Read {len(payload['rows'])} rows from '{payload['sheet_name']}'.", None

            # ─── 2. Normalize + Aggregate (30-90%) ───
            yield 40, "Processing rows...", None
            result = self.process_rows(payload["rows"], report_type)
            yield 90, "Processing Complete.", None

        except Exception as e:
            logger.exception("PIPELINE_ERROR")
            message = ERROR_MESSAGES.get(report_type, DEFAULT_ERROR)
            yield 0, f"Error: {e}", {
                "success": False,
                "report_type": report_type.value,
                "error": message,
                "stats": {},
            }
            return

        result["stats"].update({
            "document_hash": payload["document_hash"],
            "source_file": payload["source_file"],
            "sheet_name": payload["sheet_name"],
            "processing_time_ms": (time.time() - start_time) * 1000,
            "timestamp": datetime.now().isoformat(),
        })
        yield 100, "Done", result

    def run(self, source: Source, report_type: str, file_type: str = "xlsx",
            source_file: str = "") -> PipelineResult:
        return drain(self.process(source, report_type, file_type, source_file))

    def process_rows(self, rows: List[RawRow], report_type: str) -> PipelineResult:
        """Transform an already decoded row sequence. Never touches prior results."""
        report_type = ReportType(report_type)

        if report_type == ReportType.DEPOSIT:
            records = sort_deposits(self.normalizer.normalize_deposits(rows))
            return {
                "success": True,
                "report_type": report_type.value,
                "records": records,
                "stats": _row_stats(rows, records),
            }

        if report_type == ReportType.REVENUE:
            normalized = self.normalizer.normalize_revenue(rows)
        elif report_type == ReportType.DEPOSIT_PURCHASE:
            normalized = self.normalizer.normalize_deposit_purchases(rows)
        else:
            normalized = self.normalizer.normalize_cashin(rows)

        aggregator = get_aggregator(report_type)
        clinics = aggregator.aggregate(normalized)
        totals = aggregator.totals(clinics)

        result: PipelineResult = {
            "success": True,
            "report_type": report_type.value,
            "clinics": clinics,
            "totals": totals,
            "stats": {**_row_stats(rows, normalized), "clinic_count": len(clinics)},
        }
        if report_type == ReportType.REVENUE:
            result["validation"] = RevenueChecksumEngine().assess(clinics, totals)
        return result

    def deposit_view(self, records: List[Any], start: Optional[date] = None) -> Dict[str, Any]:
        """Deposits expiring inside the window, with the headline counts."""
        start = start or date.today()
        window_start, window_end = self.expiry_filter.window(start)
        expiring = self.expiry_filter.filter(records, start)
        return {
            "start": window_start,
            "end": window_end,
            "records": expiring,
            "expiring_count": len(expiring),
            "clinic_count": len({r.clinic_code for r in expiring}),
            "user_count": len({r.user_id for r in expiring}),
        }


def drain(steps: Iterator[Progress]) -> Optional[PipelineResult]:
    """Run the remaining progress steps and return the final result."""
    result = None
    for _, _, res in steps:
        if res:
            result = res
    return result


def _row_stats(rows: List[RawRow], kept: List[Any]) -> RowStats:
    return {
        "total_rows": len(rows),
        "retained_rows": len(kept),
        "dropped_rows": len(rows) - len(kept),
    }


class ReportBook:
    """
    Latest successful result per report type.

    A failed run is returned to the caller but never replaces what is stored.
    """

    def __init__(self, pipeline: Optional[ReportPipeline] = None):
        self.pipeline = pipeline or ReportPipeline()
        self.results: Dict[ReportType, PipelineResult] = {}

    def publish(self, result: Optional[PipelineResult]) -> bool:
        if not result or not result.get("success"):
            return False
        self.results[ReportType(result["report_type"])] = result
        return True

    def get(self, report_type: str) -> Optional[PipelineResult]:
        return self.results.get(ReportType(report_type))

    def deposit_view(self, start: Optional[date] = None) -> Optional[Dict[str, Any]]:
        result = self.get(ReportType.DEPOSIT)
        if result is None:
            return None
        return self.pipeline.deposit_view(result["records"], start)


def to_json(value: Any) -> Any:
    """Convert results (dataclasses, dates) into JSON-ready structures."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value
