"""
FastAPI Server for the Measurement Data Pipeline

Provides REST API endpoints for uploading measurement files and querying
the stored summaries and values.
"""

import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from measurement_data import __version__
from measurement_data.pipeline import (
    IncomingFile,
    MeasurementPipeline,
    MeasurementRecord,
    PipelineValidationError,
    ResultFilter,
    SQLiteMeasurementRepository,
    SummaryRecord,
)
from measurement_data.utils.config import Config
from measurement_data.utils.logging_setup import setup_logging
from measurement_data.utils.performance_monitor import SystemResourceMonitor

config = Config()

setup_logging(log_level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Measurement Data API",
    description="Upload measurement files, validate them and query per-file statistics",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

FILE_NAME_REQUIRED_MSG = "Parameter file_name is required."


@lru_cache(maxsize=1)
def get_repository() -> SQLiteMeasurementRepository:
    """Repository shared by all requests."""
    return SQLiteMeasurementRepository(config.DATABASE_PATH)


@lru_cache(maxsize=8)
def pipeline_for(repository: SQLiteMeasurementRepository) -> MeasurementPipeline:
    """One pipeline per repository; parsers and validator hold no per-file state."""
    return MeasurementPipeline(repository=repository, config=config)


def get_pipeline(repository: SQLiteMeasurementRepository = Depends(get_repository)) -> MeasurementPipeline:
    return pipeline_for(repository)


def _error_payload(errors) -> dict:
    return {"errors": list(errors), "error_count": len(errors)}


@app.exception_handler(PipelineValidationError)
async def validation_error_handler(request: Request, exc: PipelineValidationError):
    return JSONResponse(status_code=400, content=_error_payload(exc.errors))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_error_payload([f"internal server error: {exc}"])
    )


def summary_to_dict(summary: SummaryRecord) -> dict:
    return {
        "file_name": summary.file_identity,
        "time_delta_seconds": summary.time_delta_seconds,
        "min_date": summary.min_date.isoformat(),
        "avg_execution_time": summary.avg_execution_time,
        "avg_value": summary.avg_value,
        "median_value": summary.median_value,
        "max_value": summary.max_value,
        "min_value": summary.min_value,
    }


def value_to_dict(record: MeasurementRecord) -> dict:
    return {
        "date": record.timestamp.isoformat(),
        "execution_time": record.execution_time,
        "value": record.value,
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Measurement Data API",
        "version": __version__,
        "endpoints": {
            "upload": "POST /api/measurements/upload - Upload a measurement file",
            "results": "GET /api/measurements/results - Filtered per-file statistics",
            "last_values": "GET /api/measurements/values/last10?file_name= - Latest 10 values of a file",
            "health": "GET /health - Health check",
            "api_docs": "/docs - API documentation"
        },
        "api_docs_url": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "resources": SystemResourceMonitor.get_system_stats()
    }


@app.post("/api/measurements/upload")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    pipeline: MeasurementPipeline = Depends(get_pipeline)
):
    """
    Upload a measurement file, validate it and store values and statistics.

    A file with the same name replaces previously stored data.

    Returns:
        dict: Number of stored records; 400 with the ordered error list on rejection
    """
    incoming = None
    if file is not None:
        content = await file.read()
        incoming = IncomingFile.from_bytes(file.filename, content)

    # Parsing and storage are synchronous; keep them off the event loop
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, pipeline.process_file, incoming)

    if not result.ok:
        raise PipelineValidationError(result.error_messages())

    logger.info(f"Upload of '{result.file_identity}' stored {result.committed_count} records")
    return {
        "message": "File processed successfully.",
        "records_processed": result.committed_count,
        "file_name": result.file_identity
    }


@app.get("/api/measurements/results")
async def list_results(
    file_name: Optional[str] = Query(None, description="Exact file name"),
    min_date_from: Optional[datetime] = Query(None, description="Earliest measurement date, lower bound"),
    min_date_to: Optional[datetime] = Query(None, description="Earliest measurement date, upper bound"),
    avg_value_from: Optional[float] = Query(None, description="Average value, lower bound"),
    avg_value_to: Optional[float] = Query(None, description="Average value, upper bound"),
    avg_exec_time_from: Optional[float] = Query(None, description="Average execution time, lower bound"),
    avg_exec_time_to: Optional[float] = Query(None, description="Average execution time, upper bound"),
    repository: SQLiteMeasurementRepository = Depends(get_repository)
):
    """
    List stored per-file statistics matching all given filters.

    Returns:
        list: Summary rows
    """
    result_filter = ResultFilter(
        file_name=file_name,
        min_date_from=min_date_from,
        min_date_to=min_date_to,
        avg_value_from=avg_value_from,
        avg_value_to=avg_value_to,
        avg_exec_time_from=avg_exec_time_from,
        avg_exec_time_to=avg_exec_time_to,
    )
    summaries = await asyncio.get_running_loop().run_in_executor(
        None, repository.get_results, result_filter
    )
    return [summary_to_dict(summary) for summary in summaries]


@app.get("/api/measurements/values/last10")
async def last_values(
    file_name: Optional[str] = Query(None, description="File name to read values for"),
    repository: SQLiteMeasurementRepository = Depends(get_repository)
):
    """
    Latest values of a file, newest first.

    Returns:
        list: Up to LAST_VALUES_LIMIT values; 400 if file_name is missing
    """
    if not file_name:
        return JSONResponse(status_code=400, content={"error": FILE_NAME_REQUIRED_MSG})

    records = await asyncio.get_running_loop().run_in_executor(
        None, repository.get_last_values, file_name, config.LAST_VALUES_LIMIT
    )
    return [value_to_dict(record) for record in records]


def start_server(host: str = config.API_HOST, port: int = config.API_PORT, reload: bool = False):
    """Start the FastAPI server."""
    logger.info(f"Starting Measurement Data API server on {host}:{port}")
    uvicorn.run(
        "api_server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


if __name__ == "__main__":
    start_server(reload=True)
