"""
Challan Workbook Processor

Merges uploaded spreadsheets and builds a daily payment summary from a
challan export, served over a small FastAPI application.

Key modules:
- main.py: FastAPI application with API endpoints
- workbook_service.py: Orchestration of decode, merge, summary and export
- table_decoder.py / merge_engine.py / payment_aggregator.py / export_encoder.py: Core steps
- serial_date.py: Spreadsheet serial date conversion
- utils/result.py: Result pattern implementation for error handling
"""
