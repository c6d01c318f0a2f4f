# api/bankparse/parsers/router.py
import logging
import time
from typing import List, Optional

from ..logging_config import log_with_context
from .assembler import rows_to_statement
from .common import extract_text_cascade
from .detect import SUPPORTED_KINDS
from .errors import UnsupportedFormat
from .models import ParsedStatement
from .pdf_text import extract_pdf_fields
from .policy_loader import ExtractionPolicy, build_extraction_policy
from .tabular import parse_csv, parse_xlsx

logger = logging.getLogger(__name__)


def parse_statement(kind: str, data: bytes, policy: Optional[ExtractionPolicy] = None) -> ParsedStatement:
    """
    Run the pipeline for an already-detected upload kind.

    Raises UnsupportedFormat for kinds outside csv/xlsx/pdf and
    ExtractionExhausted when no text can be pulled from a PDF.
    """
    t0 = time.time()
    label = (kind or "").strip().lower()
    if label not in SUPPORTED_KINDS:
        raise UnsupportedFormat(kind)

    warnings: List[str] = []
    strategy: Optional[str] = None

    if label == "csv":
        statement = rows_to_statement(parse_csv(data))
    elif label == "xlsx":
        statement = rows_to_statement(parse_xlsx(data))
    else:
        policy = policy or build_extraction_policy()
        extracted = extract_text_cascade(data, policy)
        warnings.extend(extracted.warnings)
        strategy = extracted.strategy
        fields = extract_pdf_fields(extracted.text, policy)
        statement = rows_to_statement(fields.rows, fields.hints)

    processing_ms = int((time.time() - t0) * 1000)
    log_with_context(
        logger,
        logging.INFO,
        "Statement parsed",
        kind=label,
        strategy=strategy,
        num_transactions=statement.footer.num_transactions,
        doc_point=statement.footer.doc_point,
        duration_ms=processing_ms,
    )
    return ParsedStatement(
        kind=label,
        statement=statement,
        warnings=warnings,
        strategy=strategy,
        processing_ms=processing_ms,
    )
