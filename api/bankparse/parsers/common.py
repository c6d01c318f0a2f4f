# api/bankparse/parsers/common.py
"""
Plain-text extraction for PDF statements.

Stages are tried in order, cheapest first:

1. pdfminer   - the embedded text layer
2. pdfplumber - page-by-page content extraction
3. ocr        - pages rendered with pdf2image and read by Tesseract

A stage is accepted once its text has at least ``min_text_yield``
non-whitespace characters. Low yield and stage faults are recorded as
warnings and the next stage is tried. The OCR stage is terminal: its output
is returned whatever its length, and if it raises the whole extraction fails
with :class:`ExtractionExhausted`.
"""
from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

import pdfplumber
import pytesseract
from pdf2image import convert_from_bytes
from pdfminer.high_level import extract_text as _pdf_extract
from PIL import Image, ImageOps

from .errors import ExtractionExhausted
from .policy_loader import ExtractionPolicy, build_extraction_policy

logger = logging.getLogger(__name__)

OCR_STRATEGY = "ocr"


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    warnings: List[str] = field(default_factory=list)
    strategy: Optional[str] = None


@dataclass(frozen=True)
class StageOutcome:
    """Result of one non-terminal stage: accepted text, or a low-yield notice."""

    accepted: bool
    text: str
    warning: Optional[str] = None


@dataclass(frozen=True)
class ExtractionStage:
    name: str
    extract: Callable[[bytes], str]
    label: Optional[str] = None

    @property
    def display(self) -> str:
        return self.label or self.name


def text_yield(text: str | None) -> int:
    return len(re.sub(r"\s+", "", text or ""))


class OcrEngine:
    """
    Tesseract handle used for one OCR attempt.

    ``start()`` must be called before ``recognize()`` and ``terminate()`` must
    run on every exit path once the engine has been created.
    """

    def __init__(self, lang: str = "eng", psm: int = 6):
        self.lang = lang
        self.config = f"--psm {psm}"
        self._ready = False

    def start(self) -> None:
        # raises TesseractNotFoundError when the binary is missing
        version = pytesseract.get_tesseract_version()
        logger.debug("Tesseract %s ready (lang=%s)", version, self.lang)
        self._ready = True

    def recognize(self, img: Image.Image) -> str:
        if not self._ready:
            raise RuntimeError("OCR engine used before start()")
        gray = img if img.mode == "L" else ImageOps.grayscale(img)
        try:
            return self._image_to_string(gray)
        finally:
            if gray is not img:
                gray.close()

    def _image_to_string(self, img: Image.Image) -> str:
        try:
            return pytesseract.image_to_string(img, lang=self.lang, config=self.config) or ""
        except pytesseract.TesseractError:
            # language pack not installed; retry in English
            if self.lang == "eng":
                raise
            logger.warning("Tesseract language %r unavailable, falling back to eng", self.lang)
            return pytesseract.image_to_string(img, lang="eng", config=self.config) or ""

    def terminate(self) -> None:
        self._ready = False


def extract_with_pdfminer(data: bytes) -> str:
    return (_pdf_extract(io.BytesIO(data)) or "").strip()


def extract_with_pdfplumber(data: bytes) -> str:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n".join(pages).strip()


def render_pages(data: bytes, dpi: int = 200) -> list:
    return convert_from_bytes(data, dpi=dpi)


def ocr_with_tesseract(
    data: bytes,
    policy: ExtractionPolicy | None = None,
    engine_factory: Callable[[], OcrEngine] | None = None,
    renderer: Callable[[bytes, int], Iterable] | None = None,
) -> str:
    policy = policy or build_extraction_policy()
    factory = engine_factory or (lambda: OcrEngine(lang=policy.ocr_lang, psm=policy.ocr_psm))
    render = renderer or render_pages

    engine = factory()
    pages: list = []
    texts: List[str] = []
    try:
        engine.start()
        pages = list(render(data, policy.ocr_dpi))
        for page_no, img in enumerate(pages, start=1):
            texts.append(engine.recognize(img))
            logger.debug("OCR page %s done", page_no)
    finally:
        # every rendered page is released, including ones never recognized
        for img in pages:
            close = getattr(img, "close", None)
            if callable(close):
                close()
        engine.terminate()
    return "\n".join(texts).strip()


def default_stages(policy: ExtractionPolicy | None = None) -> List[ExtractionStage]:
    policy = policy or build_extraction_policy()
    return [
        ExtractionStage("pdfminer", extract_with_pdfminer),
        ExtractionStage("pdfplumber", extract_with_pdfplumber),
        ExtractionStage(OCR_STRATEGY, lambda data: ocr_with_tesseract(data, policy), label="OCR"),
    ]


def _run_stage(stage: ExtractionStage, data: bytes, min_yield: int, next_stage: ExtractionStage) -> StageOutcome:
    text = stage.extract(data) or ""
    if text and text_yield(text) >= min_yield:
        return StageOutcome(accepted=True, text=text)
    return StageOutcome(
        accepted=False,
        text=text,
        warning=f"Low text from {stage.name}; trying {next_stage.name}.",
    )


def extract_text_cascade(
    data: bytes,
    policy: ExtractionPolicy | None = None,
    stages: Sequence[ExtractionStage] | None = None,
) -> ExtractionResult:
    policy = policy or build_extraction_policy()
    stages = list(stages) if stages is not None else default_stages(policy)
    if not stages:
        raise ValueError("extract_text_cascade needs at least one stage")

    warnings: List[str] = []
    *gated, terminal = stages

    for idx, stage in enumerate(gated):
        next_stage = stages[idx + 1]
        try:
            outcome = _run_stage(stage, data, policy.min_text_yield, next_stage)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s extraction failed: %s", stage.name, exc)
            warnings.append(f"{stage.name} failed: {exc}")
            continue
        if outcome.accepted:
            logger.info("Text extracted with %s (%s chars)", stage.name, len(outcome.text))
            return ExtractionResult(text=outcome.text, warnings=warnings, strategy=stage.name)
        logger.info("Low text yield from %s", stage.name)
        warnings.append(outcome.warning)

    try:
        text = (terminal.extract(data) or "").strip()
    except Exception as exc:  # noqa: BLE001
        logger.error("%s extraction failed: %s", terminal.name, exc)
        warnings.append(f"{terminal.display} failed: {exc}")
        raise ExtractionExhausted(warnings) from exc

    if text and terminal.name == OCR_STRATEGY:
        warnings.append("OCR used (tesseract).")
    if text_yield(text) < policy.min_text_yield:
        warnings.append(
            f"Low text yield after {terminal.display}; document is likely low-quality or scanned."
        )
    return ExtractionResult(text=text, warnings=warnings, strategy=terminal.name)
