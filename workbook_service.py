import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

import config
from errors import EmptyInputError, InvalidMaskError
from export_encoder import encode, suggested_file_name
from merge_engine import merge
from models import (
    AggregationSettings,
    DecodeResponse,
    FileError,
    MergedTable,
    MergePolicy,
    MergeResponse,
    PaymentSummaryRecord,
    PaymentSummaryResponse,
    TablePreview,
)
from payment_aggregator import aggregate
from table_decoder import BatchDecodeResult, decode_many
from utils.log_context import LogContext, new_request_id
from utils.result import Result

logger = logging.getLogger(__name__)

UploadedFile = Tuple[str, bytes]


class MergeOutcome(BaseModel):
    """Merged table plus the files that had to be left out."""
    policy: str
    merged: MergedTable
    file_errors: List[FileError] = Field(default_factory=list)

    def to_response(self, error: Optional[str] = None) -> MergeResponse:
        return MergeResponse(
            success=True,
            policy=self.policy,
            header=self.merged.header.values() if self.merged.header is not None else None,
            rows=[row.values() for row in self.merged.rows],
            total_rows=len(self.merged.rows),
            file_errors=self.file_errors,
            error=error,
        )


class ExportFile(BaseModel):
    """A finished workbook ready to be sent as an attachment."""
    file_name: str
    content: bytes
    media_type: str = config.XLSX_MEDIA_TYPE


def _all_failed_message(batch: BatchDecodeResult) -> str:
    details = "; ".join(f"{e.file_name}: {e.error}" for e in batch.errors)
    return f"None of the uploaded files could be decoded ({details})"


class WorkbookProcessor:
    """
    Runs the decode, merge, summarize and export steps for the API.

    Every method returns a Result: core exceptions never escape, they are
    turned into a 200 "No data found", a 400 or a 500 result.
    """

    @staticmethod
    async def decode_files(files: Sequence[UploadedFile]) -> Result[DecodeResponse]:
        """
        Decode uploads so a client can show their rows and build masks.

        Args:
            files: (file name, content) pairs in upload order

        Returns:
            Result[DecodeResponse]: Decoded tables and per-file errors
        """
        request_id = new_request_id()
        log_context = {"request_id": request_id, "file_count": len(files)}
        try:
            with LogContext("decode files", logger=logger, **log_context):
                batch = await decode_many(files)

            if not batch.tables:
                return Result.invalid_input(_all_failed_message(batch))

            response = DecodeResponse(
                success=True,
                tables=[
                    TablePreview(name=table.name, rows=table.values(), total_rows=len(table.rows))
                    for table in batch.tables
                ],
                file_errors=batch.errors,
            )
            return Result.ok(response)

        except EmptyInputError as e:
            logger.warning(f"Nothing to decode: {e}", extra=log_context)
            return Result.no_data(DecodeResponse(success=True, error=str(e)))
        except Exception as e:
            logger.exception("Unexpected error while decoding files", extra={**log_context, "error": str(e)})
            return Result.server_error(f"Processing error: {str(e)}")

    @staticmethod
    async def merge_files(
        files: Sequence[UploadedFile],
        policy: MergePolicy,
        masks: Optional[Sequence[Optional[Sequence[bool]]]] = None,
    ) -> Result[MergeOutcome]:
        """
        Decode every upload, wait for all of them, then merge.

        Args:
            files: (file name, content) pairs in upload order
            policy: Offset or selection policy
            masks: Selection masks, one per uploaded file

        Returns:
            Result[MergeOutcome]: The merged table, or no-data/failure
        """
        request_id = new_request_id()
        log_context = {"request_id": request_id, "file_count": len(files), "policy": policy.kind}
        logger.info("Merging uploaded files", extra=log_context)

        try:
            if masks is not None and len(masks) != len(files):
                return Result.invalid_input(f"Got {len(masks)} masks for {len(files)} files")

            with LogContext("decode files", logger=logger, **log_context):
                batch = await decode_many(files)

            if not batch.tables:
                return Result.invalid_input(_all_failed_message(batch))

            table_masks = [masks[position] for position in batch.positions] if masks is not None else None

            with LogContext("merge tables", logger=logger, **log_context):
                merged = merge(batch.tables, policy, table_masks)

            outcome = MergeOutcome(policy=policy.kind, merged=merged, file_errors=batch.errors)
            if not merged.rows:
                logger.warning("Merge produced no data rows", extra=log_context)
                return Result.no_data(outcome)
            return Result.ok(outcome)

        except EmptyInputError as e:
            logger.warning(f"Nothing to merge: {e}", extra=log_context)
            return Result.no_data()
        except InvalidMaskError as e:
            logger.warning(f"Rejected selection masks: {e}", extra=log_context)
            return Result.invalid_input(str(e))
        except Exception as e:
            logger.exception("Unexpected error while merging files", extra={**log_context, "error": str(e)})
            return Result.server_error(f"Processing error: {str(e)}")

    @staticmethod
    async def summarize_payments(
        file: UploadedFile,
        settings: Optional[AggregationSettings] = None,
        now: Optional[datetime] = None,
    ) -> Result[List[PaymentSummaryRecord]]:
        """
        Decode a challan export and build the daily payment summary.

        Returns:
            Result[List[PaymentSummaryRecord]]: Records in first-seen order;
            a no-data result when no row falls inside the date window
        """
        file_name = file[0]
        log_context = {"request_id": new_request_id(), "file_name": file_name}
        logger.info("Summarizing payments", extra=log_context)

        try:
            with LogContext("decode files", logger=logger, **log_context):
                batch = await decode_many([file])

            if batch.errors:
                return Result.invalid_input(batch.errors[0].error)

            with LogContext("aggregate payments", logger=logger, **log_context):
                records = aggregate(batch.tables[0], settings=settings, now=now)

            if not records:
                return Result.no_data([])
            return Result.ok(records)

        except EmptyInputError as e:
            logger.warning(f"Nothing to summarize: {e}", extra=log_context)
            return Result.no_data([])
        except Exception as e:
            logger.exception("Unexpected error while summarizing payments", extra={**log_context, "error": str(e)})
            return Result.server_error(f"Processing error: {str(e)}")

    @staticmethod
    def export(data) -> Result[ExportFile]:
        """
        Encode a merged table or a summary as an .xlsx attachment.

        Args:
            data: MergedTable or list of PaymentSummaryRecord

        Returns:
            Result[ExportFile]: File name, bytes and media type
        """
        try:
            with LogContext("encode workbook", logger=logger):
                content = encode(data)
            return Result.ok(ExportFile(file_name=suggested_file_name(data), content=content))
        except Exception as e:
            logger.exception("Unexpected error while encoding workbook", extra={"error": str(e)})
            return Result.server_error(f"Export error: {str(e)}")


def summary_response(result: Result[List[PaymentSummaryRecord]]) -> Result[PaymentSummaryResponse]:
    """Wrap summary records in the API response schema."""
    return result.map(
        lambda records: PaymentSummaryResponse(
            success=True,
            summaries=records or [],
            total_records=len(records or []),
            error=result.error,
        )
    )


def merge_response(result: Result[MergeOutcome]) -> Result[MergeResponse]:
    """Wrap a merge outcome in the API response schema."""
    return result.map(
        lambda outcome: outcome.to_response(result.error) if outcome is not None
        else MergeResponse(success=True, error=result.error)
    )
