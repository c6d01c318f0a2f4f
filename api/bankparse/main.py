import os
import logging
from fastapi import FastAPI, UploadFile, File, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
# Load .env file, but don't override variables already set in the environment
load_dotenv(override=False)

from .logging_config import setup_structured_logging
from .middleware.request_context import RequestContextMiddleware
from .parsers.detect import detect_kind
from .parsers.errors import ExtractionExhausted, UnsupportedFormat
from .parsers.policy_loader import build_extraction_policy
from .parsers.router import parse_statement
from .schemas import ParseResponse

setup_structured_logging()
logger = logging.getLogger(__name__)

MAX_FILE_MB = int(os.getenv("MAX_FILE_MB", "15"))

app = FastAPI(title="Bank Statement Normalizer API", version="0.1.0")

# Format: comma-separated list of origins, e.g., "http://localhost:3000,https://yourdomain.com"
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestContextMiddleware)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/v1/parse-statement", response_model=ParseResponse)
async def parse_statement_endpoint(file: UploadFile = File(...)):
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    mb = len(contents) / (1024 * 1024)
    if mb > MAX_FILE_MB:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"File too large ({mb:.2f} MB). Max {MAX_FILE_MB} MB")

    kind = detect_kind(file.filename, file.content_type, contents)
    logger.info(f"Upload {file.filename!r} detected as {kind}")

    try:
        parsed = await run_in_threadpool(parse_statement, kind, contents, build_extraction_policy())
    except UnsupportedFormat:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                            detail="Unsupported file type")
    except ExtractionExhausted as e:
        logger.warning(f"Extraction exhausted for {file.filename!r}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail={"error": "No text could be extracted", "warnings": e.warnings})
    except Exception as e:
        logger.exception(f"Failed to parse {file.filename!r}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail={"error": "Failed to parse statement", "details": str(e)})

    return {
        "kind": parsed.kind,
        "statement": parsed.statement.to_dict(),
        "warnings": parsed.warnings,
        "strategy": parsed.strategy,
        "meta": {"processing_ms": parsed.processing_ms, "filename": file.filename},
    }
