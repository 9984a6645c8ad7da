"""
Drafting service: loads legal_templates.json once, fills ``{{KEY}}``
placeholders and renders drafts to PDF with reportlab.
"""
from __future__ import annotations

import io
import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from app.db.schemas import DraftTemplate
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{([A-Z0-9_]+)\}\}")
TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "data" / "legal_templates.json"


class DraftingService:
    """Singleton that owns the in-memory template catalogue."""

    def __init__(self, path: Path = TEMPLATES_PATH) -> None:
        self._path = path
        self._templates: Dict[str, DraftTemplate] = {}
        self._loaded = False

    def load(self) -> None:
        with open(self._path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        self._templates = {
            t["id"]: DraftTemplate.model_validate(t) for t in data.get("templates", [])
        }
        self._loaded = True
        logger.info("Drafting templates loaded: %d", len(self._templates))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # ── Catalogue ────────────────────────────────────────────────────────────

    def list_templates(self, category: Optional[str] = None) -> List[DraftTemplate]:
        self._ensure_loaded()
        templates = list(self._templates.values())
        if category:
            templates = [t for t in templates if t.category.lower() == category.lower()]
        return templates

    def get_template(self, template_id: str) -> DraftTemplate:
        self._ensure_loaded()
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError("Template")
        return template

    # ── Rendering ────────────────────────────────────────────────────────────

    def render(self, template: DraftTemplate, values: Dict[str, str]) -> Tuple[str, List[str]]:
        """
        Substitute every placeholder that has a non-empty value. Returns the
        draft and the field ids still unfilled; their placeholders stay.
        """
        missing: List[str] = []

        def _sub(match: re.Match) -> str:
            key = match.group(1)
            value = (values.get(key) or "").strip()
            if not value:
                if key not in missing:
                    missing.append(key)
                return match.group(0)
            return value

        return PLACEHOLDER.sub(_sub, template.content), missing

    def build_pdf(self, title: str, draft: str) -> bytes:
        """A4 PDF of the draft; unfilled placeholders print as underlined labels."""
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
        from reportlab.lib.units import cm
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=2.5 * cm,
            rightMargin=2.5 * cm,
            topMargin=2.5 * cm,
            bottomMargin=2.5 * cm,
            title=title,
        )

        styles = getSampleStyleSheet()
        body_style = ParagraphStyle(
            "DraftBody",
            parent=styles["Normal"],
            fontName="Times-Roman",
            fontSize=12,
            leading=18,
            spaceAfter=8,
        )

        story = []
        for para in draft.split("\n\n"):
            para = para.strip()
            if not para:
                continue
            # Escape XML special chars for reportlab Paragraph
            safe = para.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
            safe = PLACEHOLDER.sub(lambda m: f"<u>{m.group(1).replace('_', ' ')}</u>", safe)
            safe = safe.replace("\n", "<br/>")
            story.append(Paragraph(safe, body_style))
            story.append(Spacer(1, 4))

        doc.build(story)
        return buf.getvalue()

    @staticmethod
    def pdf_filename(title: str) -> str:
        return re.sub(r"\s+", "_", title.strip()) + "_Draft.pdf"


drafting_service = DraftingService()
