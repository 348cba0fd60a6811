"""
Module: document.extraction

Purpose:
    The text-extraction collaborator: (document_path, page_number, margins)
    -> ExtractionResult. Two implementations share that call shape:

    - PdfTextExtractor reads the text inside the margin box with PyMuPDF.
    - CommandTextExtractor runs an external page parser as
      ``<command> <path> -p <page> -m <left,top,right,bottom>``.

    Margins are passed as their raw signed values, so right and bottom are
    usually negative in the argument string.

Key Functions:
    - format_margin_arg(): Margins -> "left,top,right,bottom"

Key Classes:
    - ExtractionResult
    - PdfTextExtractor
    - CommandTextExtractor

Used By:
    - session.AnnotationSession.save_page_metadata
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import fitz

from ..core.models.margins import Margins
from ..errors import ExtractionError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_margin_arg(margins: Margins) -> str:
    """
    Margins as the parser's ``-m`` argument.

    Example:
        >>> format_margin_arg(Margins(top=72, right=-72, bottom=-36, left=144))
        '144,72,-72,-36'
    """
    return ",".join(
        _format_number(v) for v in (margins.left, margins.top, margins.right, margins.bottom)
    )


@dataclass(frozen=True)
class ExtractionResult:
    """Text extracted from one page inside its margins."""

    page_number: int
    text: str
    margins_arg: str
    stderr: str = ""


class TextExtractor(Protocol):
    def extract(self, document_path: Path | str, page_number: int, margins: Margins) -> ExtractionResult:
        ...


class PdfTextExtractor:
    """In-process extraction, clipping the page to the margin box."""

    def extract(self, document_path: Path | str, page_number: int, margins: Margins) -> ExtractionResult:
        """
        Extract plain text inside the margins of a page.

        Args:
            document_path: PDF file
            page_number: 1-based page number
            margins: Signed margins in unscaled page pixels (PDF points)

        Raises:
            ExtractionError: If the document cannot be read or the page
                does not exist
        """
        path = Path(document_path)
        try:
            with fitz.open(path) as doc:
                if not 1 <= page_number <= doc.page_count:
                    raise ExtractionError(
                        f"Page {page_number} out of range 1..{doc.page_count}",
                        page_number=page_number,
                    )
                page = doc[page_number - 1]
                x0, y0, x1, y1 = margins.content_box(page.rect.width, page.rect.height)
                clip = fitz.Rect(x0, y0, x1, y1)
                text = page.get_text("text", clip=clip) or ""
        except (RuntimeError, ValueError, OSError) as e:
            raise ExtractionError(
                f"Failed to extract page {page_number} of {path.name}: {e}",
                page_number=page_number,
            ) from e

        logger.info(f"Extracted {len(text)} chars from page {page_number} of {path.name}")
        return ExtractionResult(page_number=page_number, text=text, margins_arg=format_margin_arg(margins))


class CommandTextExtractor:
    """
    Extraction through an external parser executable.

    Args:
        command: Program and leading arguments, as a list or a shell-style string
        timeout: Seconds before the parser is abandoned
    """

    def __init__(self, command: Sequence[str] | str, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.command:
            raise ValueError("command must not be empty")
        self.timeout = timeout

    def build_args(self, document_path: Path | str, page_number: int, margins: Margins) -> list[str]:
        return [
            *self.command,
            str(document_path),
            "-p",
            str(page_number),
            "-m",
            format_margin_arg(margins),
        ]

    def extract(self, document_path: Path | str, page_number: int, margins: Margins) -> ExtractionResult:
        """
        Run the parser and capture its stdout as the extracted text.

        Raises:
            ExtractionError: If the parser cannot start, times out or exits
                non-zero
        """
        args = self.build_args(document_path, page_number, margins)
        logger.debug(f"Running parser: {' '.join(args)}")
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ExtractionError(f"Parser failed to run: {e}", page_number=page_number) from e

        if completed.returncode != 0:
            raise ExtractionError(
                f"Parser exited with status {completed.returncode}",
                page_number=page_number,
                stderr=completed.stderr,
            )
        if completed.stderr:
            logger.warning(f"Parser stderr for page {page_number}: {completed.stderr.strip()}")

        return ExtractionResult(
            page_number=page_number,
            text=completed.stdout,
            margins_arg=args[-1],
            stderr=completed.stderr,
        )
