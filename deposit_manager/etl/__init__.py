"""
ETL Package - Clinic report ingestion and validation

Modules:
- extract: First-sheet spreadsheet reading (xlsx / csv)
- coerce: Total cell coercion (text, number, currency amount, DD/MM/YYYY date)
- transform: Per-report row normalization
- categorize: Item type and payment method rules
- collation: Locale-style sort key for codes and labels
- filter: Deposit expiry window and ordering
- aggregate: Per-clinic accumulation and totals
- dq: Revenue checksum cross-validation
- pipeline: Main orchestrator
- schema: Header names and TypedDict definitions
"""
from .pipeline import ReportBook, ReportPipeline
from .schema import PipelineResult, ReportType

__all__ = ['ReportBook', 'ReportPipeline', 'PipelineResult', 'ReportType']
