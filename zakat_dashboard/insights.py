"""
Narrative insights and collection forecasts from a generative text model.

The dashboard depends only on the InsightProvider shape (predict, narrate,
potential). GeminiInsights talks to the Gemini API through google-genai;
NullInsights is used when no API key is configured and returns nothing.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from .config import GEMINI_API_KEY, GEMINI_MODEL
from .models import Category, DashboardState, HistoryPoint, PredictionPoint

logger = logging.getLogger(__name__)

NARRATIVE_UNAVAILABLE = "Maaf, analisis AI saat ini tidak tersedia. Silakan coba lagi nanti."

_PREDICTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "month": {"type": "STRING"},
            "amount": {"type": "NUMBER"},
            "type": {"type": "STRING"},
        },
        "required": ["month", "amount", "type"],
    },
}


@dataclass(frozen=True)
class InsightContext:
    """The numbers a prompt is built from."""

    institution_name: str
    period_year: str
    total_target: int
    total_collected: int
    total_muzaki: int
    categories: tuple[Category, ...] = ()

    @classmethod
    def from_state(cls, state: DashboardState) -> "InsightContext":
        return cls(
            institution_name=state.institution_name,
            period_year=state.period_year,
            total_target=state.total_target,
            total_collected=state.total_collected,
            total_muzaki=state.total_muzaki,
            categories=state.categories,
        )


class InsightProvider(Protocol):
    enabled: bool

    def predict(self, history: list[HistoryPoint], context: InsightContext) -> list[PredictionPoint]:
        ...

    def narrate(self, context: InsightContext) -> str:
        ...

    def potential(self) -> str:
        ...


def _fmt(n: int) -> str:
    """Indonesian thousands separator: 1234567 -> '1.234.567'."""
    return f"{n:,}".replace(",", ".")


def build_prediction_prompt(history: list[HistoryPoint], context: InsightContext) -> str:
    history_str = ", ".join(f"{h.month}: {h.amount}" for h in history)
    return (
        f"Analisis data historis bulanan {context.institution_name}: [{history_str}]. "
        f"Target tahunan total adalah {context.total_target}. "
        f"Prediksikan nilai penghimpunan untuk bulan-bulan yang tersisa di tahun "
        f"{context.period_year}. Berikan respon dalam format JSON array yang berisi objek "
        f'dengan properti "month", "amount", dan "type" (set ke "predicted"). '
        f'Sertakan juga data historis yang sudah ada dengan "type" set ke "actual".'
    )


def build_narrative_prompt(context: InsightContext) -> str:
    lines = []
    for cat in context.categories:
        pct = round(cat.collected / (cat.target or 1) * 100)
        lines.append(
            f"- {cat.name}: Dana {_fmt(cat.collected)} ({pct}% dari target), "
            f"Muzaki: {_fmt(cat.muzaki)} jiwa"
        )
    category_details = "\n".join(lines)

    return f"""Sebagai konsultan ahli zakat BAZNAS, lakukan analisis mendalam terhadap data penghimpunan {context.institution_name} periode {context.period_year}:

DATA RINGKASAN:
Total Target: {_fmt(context.total_target)}
Total Terhimpun: {_fmt(context.total_collected)}
Total Muzaki: {_fmt(context.total_muzaki)} jiwa

DATA PER KATEGORI:
{category_details}

INSTRUKSI ANALISIS:
Berikan laporan strategis yang mencakup:
1. **Performa Terhadap Target**: Evaluasi posisi saat ini.
2. **Analisis Efisiensi Muzaki**: Hubungkan jumlah muzaki dengan dana yang terhimpun per kategori.
3. **Rekomendasi Spesifik**: Berikan 3 poin tindakan konkret untuk sisa tahun ini.

Gunakan format Markdown yang rapi. Berikan respon dalam Bahasa Indonesia."""


POTENTIAL_PROMPT = """Lakukan analisis potensi Zakat, Infak, dan Sedekah (ZIS) di Kabupaten Tasikmalaya secara ringkas (bullet points):
1. Wilayah: potensi di 39 kecamatan dan wilayah dengan konsentrasi ekonomi tertinggi.
2. Pengusaha: potensi dari UMKM, kerajinan tangan (bordir, mendong), dan perdagangan.
3. Pertanian: potensi dari sektor padi dan perikanan darat.
4. Estimasi Angka: estimasi potensi dana ZIS tahunan.

Gunakan bahasa Indonesia yang profesional. Format output: Markdown sederhana tanpa judul besar."""


def parse_predictions(text: str) -> list[PredictionPoint]:
    """Decode the model's JSON array, skipping malformed items."""
    raw = json.loads(text or "[]")
    if not isinstance(raw, list):
        raise ValueError("Prediction response is not a JSON array")

    points = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            amount = int(round(float(item.get("amount", 0))))
        except (TypeError, ValueError):
            continue
        kind = item.get("type")
        points.append(PredictionPoint(
            month=str(item.get("month", "?")),
            amount=amount,
            type=kind if kind in ("actual", "predicted") else "predicted",
        ))
    return points


class NullInsights:
    """Used when no API key is configured: every call returns nothing."""

    enabled = False

    def predict(self, history, context) -> list[PredictionPoint]:
        return []

    def narrate(self, context) -> str:
        return ""

    def potential(self) -> str:
        return ""


class GeminiInsights:
    """Insight provider backed by the Gemini API."""

    enabled = True

    def __init__(self, api_key: str | None = None, model: str = GEMINI_MODEL, client=None):
        if client is None:
            from google import genai

            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model

    def _generate(self, prompt: str, config: dict | None = None) -> str:
        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""

    def predict(self, history: list[HistoryPoint], context: InsightContext) -> list[PredictionPoint]:
        """Actual + predicted monthly amounts, or [] if the request fails."""
        try:
            text = self._generate(
                build_prediction_prompt(history, context),
                config={
                    "response_mime_type": "application/json",
                    "response_schema": _PREDICTION_SCHEMA,
                },
            )
            points = parse_predictions(text)
        except Exception:
            logger.exception("Error generating AI predictions")
            return []
        logger.info("Received %d prediction points", len(points))
        return points

    def narrate(self, context: InsightContext) -> str:
        """Markdown strategic analysis, or a fallback message on failure."""
        try:
            return self._generate(build_narrative_prompt(context)) or "Gagal memuat analisis."
        except Exception:
            logger.exception("Error generating AI insights")
            return NARRATIVE_UNAVAILABLE

    def potential(self) -> str:
        """Regional ZIS potential as bullet text."""
        try:
            return self._generate(POTENTIAL_PROMPT) or "Gagal memuat analisis potensi."
        except Exception:
            logger.exception("Error fetching ZIS potential")
            return "Terjadi kesalahan saat memproses analisis AI."


def build_insight_provider(api_key: str | None = GEMINI_API_KEY, model: str = GEMINI_MODEL):
    """GeminiInsights when a key is available, otherwise NullInsights."""
    if not api_key:
        return NullInsights()
    return GeminiInsights(api_key=api_key, model=model)


# ---------------------------------------------------------------------------
# Narrative markup
# ---------------------------------------------------------------------------
_INLINE_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")


def parse_narrative(text: str) -> list[tuple[str, str]]:
    """Classify narrative lines for rendering.

    Returns (kind, text) pairs where kind is one of:
        "blank"  : empty line
        "heading": line starting with ###
        "bold"   : whole line wrapped in **
        "bullet" : line starting with - or *
        "text"   : anything else, inline ** removed
    """
    blocks = []
    for line in (text or "").split("\n"):
        s = line.strip()
        if not s:
            blocks.append(("blank", ""))
        elif s.startswith("###"):
            blocks.append(("heading", s.replace("###", "").strip()))
        elif s.startswith("**") and s.endswith("**") and len(s) >= 4:
            blocks.append(("bold", s.replace("**", "").strip()))
        elif s.startswith("-") or s.startswith("*"):
            blocks.append(("bullet", s[1:].strip()))
        else:
            blocks.append(("text", _INLINE_BOLD_RE.sub(r"\1", s)))
    return blocks
