from fastapi import FastAPI, File, Form, Query, UploadFile
import os
import json
import logging
from datetime import datetime
from typing import List, Literal, Optional
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter, ValidationError

import config
from models import MergePolicy, MergeResponse, PaymentSummaryResponse, DecodeResponse
from utils.result import Result
from workbook_service import WorkbookProcessor, merge_response, summary_response


# Create logs directory if it doesn't exist
os.makedirs(config.LOG_DIR, exist_ok=True)

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file; the core modules log through the root logger
log_file_path = os.path.join(config.LOG_DIR, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
logging.getLogger().addHandler(file_handler)

OutputFormat = Literal["json", "xlsx"]

policy_adapter = TypeAdapter(MergePolicy)
masks_adapter = TypeAdapter(List[Optional[List[bool]]])


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Challan Workbook Processor API",
    description="API for merging spreadsheets and summarizing challan payments",
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Or specify the UI origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def read_uploads(files: List[UploadFile]):
    """
    Read uploaded files into (file name, content) pairs.

    Args:
        files: Files of a multipart request, in upload order

    Returns:
        list: (file name, bytes) tuples
    """
    uploads = []
    for upload in files:
        uploads.append((upload.filename or "upload", await upload.read()))
    return uploads


def parse_policy(policy: str, preamble_rows: int) -> Result[MergePolicy]:
    """Build a MergePolicy from form fields."""
    try:
        return Result.ok(policy_adapter.validate_python({"kind": policy, "preamble_rows": preamble_rows}))
    except ValidationError as e:
        logger.warning(f"Invalid merge policy: {policy}", extra={"errors": e.errors()})
        return Result.invalid_input(f"Invalid merge policy '{policy}': expected 'offset' or 'selection' with preamble_rows >= 1")


def parse_masks(masks: Optional[str]) -> Result[Optional[List[Optional[List[bool]]]]]:
    """Parse the JSON encoded selection masks form field."""
    if masks is None or masks.strip() == "":
        return Result.ok(None)
    try:
        return Result.ok(masks_adapter.validate_python(json.loads(masks)))
    except (ValueError, ValidationError) as e:
        logger.warning("Invalid selection masks", extra={"error": str(e)})
        return Result.invalid_input("masks must be a JSON list with one list of booleans per file")


def error_response(result: Result) -> JSONResponse:
    return JSONResponse(status_code=result.status_code.value, content=result.to_dict())


def attachment(result: Result) -> Response:
    """Turn a Result[ExportFile] into a download, or an error response."""
    if result.is_failure():
        return error_response(result)
    export = result.data
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.file_name}"'}
    )


# API Endpoints
@app.post(
    "/tables/",
    response_model=DecodeResponse,
    tags=["Workbooks"]
)
async def decode_tables(files: List[UploadFile] = File(...)):
    """
    Decode uploaded spreadsheets and return their rows.

    Clients use the rows to let the user tick the ones to merge.

    Returns:
        DecodeResponse: One table per decodable file plus per-file errors
    """
    logger.info(f"Decoding {len(files)} uploaded files")
    result = await WorkbookProcessor.decode_files(await read_uploads(files))
    if result.is_failure():
        return error_response(result)
    return result.data


@app.post(
    "/merge/",
    response_model=MergeResponse,
    tags=["Workbooks"]
)
async def merge_tables(
    files: List[UploadFile] = File(...),
    policy: str = Form("offset"),
    preamble_rows: int = Form(config.PREAMBLE_ROWS),
    masks: Optional[str] = Form(None),
    output: OutputFormat = Query("json"),
):
    """
    Merge uploaded spreadsheets into one table.

    Form fields:
        policy: ``offset`` strips the shared preamble of every file,
            ``selection`` keeps only rows ticked in ``masks``
        preamble_rows: Size of the preamble for the offset policy
        masks: JSON list with one boolean list per file (selection policy)

    Returns:
        MergeResponse as JSON, or MergedData.xlsx when ``output=xlsx``
    """
    policy_result = parse_policy(policy, preamble_rows)
    if policy_result.is_failure():
        return error_response(policy_result)
    masks_result = parse_masks(masks)
    if masks_result.is_failure():
        return error_response(masks_result)

    result = await WorkbookProcessor.merge_files(
        await read_uploads(files), policy_result.data, masks_result.data
    )
    if result.is_failure():
        return error_response(result)

    if output == "xlsx" and result.data is not None:
        return attachment(result.and_then(lambda outcome: WorkbookProcessor.export(outcome.merged)))
    return merge_response(result).data


@app.post(
    "/payment-summary/",
    response_model=PaymentSummaryResponse,
    response_model_by_alias=True,
    tags=["Payments"]
)
async def payment_summary(
    file: UploadFile = File(...),
    output: OutputFormat = Query("json"),
):
    """
    Summarize a challan export per challan date.

    Returns:
        PaymentSummaryResponse as JSON, or PaymentSummary.xlsx when ``output=xlsx``
    """
    uploads = await read_uploads([file])
    result = await WorkbookProcessor.summarize_payments(uploads[0])
    if result.is_failure():
        return error_response(result)

    if output == "xlsx" and result.data:
        return attachment(result.and_then(WorkbookProcessor.export))
    return summary_response(result).data


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Challan Workbook Processor API in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
