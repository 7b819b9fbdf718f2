import locale
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Literal

from fastapi import BackgroundTasks, FastAPI, Query, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from . import config
from .models import ConversionOptions, FailureReason
from .results2csv import convert_async, use_system_collation

# Configure logging
logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="Results to CSV Converter")

ERROR_STATUS = {
    FailureReason.READ: 400,
    FailureReason.PARSE: 400,
    FailureReason.WRITE: 500,
}


@app.on_event("startup")
async def startup_event():
    use_system_collation()
    logger.info(f"Roll number collation: {locale.setlocale(locale.LC_COLLATE)}")


@app.get("/")
async def root():
    return {"message": "results2csv API is running."}


@app.post("/convert")
async def convert_file(
    file: UploadFile,
    background_tasks: BackgroundTasks,
    header_strategy: Literal["first", "union"] = Query("first"),
    quoting: Literal["json", "csv"] = Query("json"),
):
    # Each request gets its own scratch directory, removed once the response is sent
    workdir = Path(tempfile.mkdtemp(prefix="results2csv-"))
    background_tasks.add_task(shutil.rmtree, workdir, ignore_errors=True)

    input_file = workdir / "results.json"
    output_file = workdir / "results.csv"

    try:
        with input_file.open("wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    except Exception as e:
        # background tasks never run when the handler raises
        logger.error(f"Error saving upload {file.filename}: {e}")
        shutil.rmtree(workdir, ignore_errors=True)
        raise
    finally:
        file.file.close()

    options = ConversionOptions(header_strategy=header_strategy, quoting=quoting)
    result = await convert_async(str(input_file), str(output_file), options)

    if not result.success:
        logger.error(f"Conversion of upload {file.filename} failed: {result.failure.message}")
        return JSONResponse(
            status_code=ERROR_STATUS[result.failure.reason],
            content={"error": result.failure.message, "reason": result.failure.reason.value},
        )

    download_name = f"{Path(file.filename or 'results').stem}.csv"
    return FileResponse(
        path=output_file,
        filename=download_name,
        media_type="text/csv",
        headers={"X-Row-Count": str(result.row_count)},
    )


@app.get("/columns")
async def get_columns():
    return {
        "trailing": config.TRAILING_HEADERS,
        "header_strategy": config.HEADER_STRATEGIES,
        "quoting": config.QUOTING_MODES,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
