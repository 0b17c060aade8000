"""
Journal exports: JSON documents, per-entry PDFs, ZIP bundles and a summary PDF.
PDFs are rendered from HTML with WeasyPrint (A4, small fonts, header/footer).
"""
from __future__ import annotations

import io
import json
import logging
import zipfile
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from jinja2 import BaseLoader, Environment, select_autoescape

from batchbook.domains.journal.models import JournalEntry
from batchbook.domains.journal.services.entry_service import word_count

logger = logging.getLogger(__name__)

TOP_TAGS_LIMIT = 10

BASE_CSS = """
  @page { size:A4; margin:25mm; @bottom-center { content: counter(page) " / " counter(pages); font-size:8pt; color:#888; } }
  html, body { font-family: Helvetica, Arial, sans-serif; font-size: 11pt; color:#111; }
  h1 { font-size: 18pt; margin: 0 0 6px; }
  .meta { font-size: 9pt; color:#666; margin: 0 0 2px; }
  .content { margin-top: 14px; text-align: justify; white-space: pre-wrap; }
  .summary-title { text-align:center; font-size: 20pt; margin-bottom: 20px; }
  h2 { font-size: 13pt; text-decoration: underline; margin-top: 22px; }
  ul.tags { padding-left: 16px; }
"""

ENTRY_TEMPLATE = r"""
<!DOCTYPE html><html><head><meta charset="utf-8"><title>{{ entry.title }}</title>
<style>{{ base_css }}</style></head><body>
<h1>{{ entry.title }}</h1>
<p class="meta">Created: {{ created }}</p>
<p class="meta">Tags: {{ tags }}</p>
<p class="meta">Word Count: {{ words }}</p>
<div class="content">{{ entry.content }}</div>
</body></html>
"""

SUMMARY_TEMPLATE = r"""
<!DOCTYPE html><html><head><meta charset="utf-8"><title>Journal Summary</title>
<style>{{ base_css }}</style></head><body>
<div class="summary-title">Journal Summary &amp; Analytics</div>
<h2>Overall Statistics</h2>
<p>Total Entries: {{ stats.totalEntries }}</p>
<p>Total Words Written: {{ stats.totalWords }}</p>
<p>Average Words Per Entry: {{ stats.averageWords }}</p>
<h2>Most Used Tags</h2>
{% if stats.topTags %}
<ul class="tags">{% for item in stats.topTags %}<li>{{ item.tag }} ({{ item.count }} times)</li>{% endfor %}</ul>
{% else %}
<p>No tags have been used yet.</p>
{% endif %}
</body></html>
"""

_env = Environment(loader=BaseLoader(), autoescape=select_autoescape(default=True, default_for_string=True))


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def sanitize_entry_for_export(entry: JournalEntry) -> Dict[str, Any]:
    """Public fields only; ids and ownership are stripped."""
    return {
        "title": entry.title,
        "content": entry.content,
        "mood": entry.mood,
        "tags": list(entry.tags or []),
        "createdAt": _iso(entry.created_at),
        "updatedAt": _iso(entry.updated_at),
    }


def export_all_json(entries: Sequence[JournalEntry], now: datetime | None = None) -> Dict[str, Any]:
    sanitized = [sanitize_entry_for_export(e) for e in entries]
    return {
        "exportDate": (now or datetime.utcnow()).isoformat() + "Z",
        "entryCount": len(sanitized),
        "entries": sanitized,
    }


def summarize(entries: Iterable[JournalEntry]) -> Dict[str, Any]:
    total_entries = 0
    total_words = 0
    tag_frequency: Counter = Counter()
    for entry in entries:
        total_entries += 1
        total_words += word_count(entry.content)
        tag_frequency.update(entry.tags or [])
    top = sorted(tag_frequency.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_TAGS_LIMIT]
    return {
        "totalEntries": total_entries,
        "totalWords": total_words,
        "averageWords": round(total_words / total_entries) if total_entries else 0,
        "topTags": [{"tag": tag, "count": count} for tag, count in top],
    }


def render_entry_html(entry: JournalEntry) -> str:
    created = entry.created_at.strftime("%B %d %Y, %I:%M %p") if entry.created_at else ""
    return _env.from_string(ENTRY_TEMPLATE).render(
        base_css=BASE_CSS,
        entry=entry,
        created=created,
        tags=", ".join(entry.tags or []) or "None",
        words=word_count(entry.content),
    )


def render_summary_html(stats: Dict[str, Any]) -> str:
    return _env.from_string(SUMMARY_TEMPLATE).render(base_css=BASE_CSS, stats=stats)


def render_pdf(html: str) -> bytes:
    try:
        from weasyprint import HTML
    except Exception as e:
        raise RuntimeError(
            "WeasyPrint is not installed. Install with: pip install weasyprint\n"
            "Docs: https://doc.courtbouillon.org/weasyprint/stable/first_steps.html#installation"
        ) from e
    try:
        return HTML(string=html).write_pdf()
    except Exception as e:
        raise RuntimeError("WeasyPrint rendering failed. Error: " + str(e)) from e


def entry_pdf(entry: JournalEntry) -> bytes:
    return render_pdf(render_entry_html(entry))


def entry_pdf_filename(entry: JournalEntry) -> str:
    return f"entry-{entry.id}.pdf"


def entries_zip(entries: Sequence[JournalEntry]) -> bytes:
    """ZIP of one PDF per entry plus a manifest.json describing each file."""
    buffer = io.BytesIO()
    manifest: List[Dict[str, Any]] = []
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for entry in entries:
            filename = entry_pdf_filename(entry)
            archive.writestr(filename, entry_pdf(entry))
            manifest.append(
                {
                    "title": entry.title,
                    "filename": filename,
                    "wordCount": word_count(entry.content),
                    "createdAt": _iso(entry.created_at),
                }
            )
        archive.writestr("manifest.json", json.dumps(manifest, indent=2))
    logger.info("Built export archive with %s entries", len(manifest))
    return buffer.getvalue()


def summary_pdf(entries: Sequence[JournalEntry]) -> bytes:
    return render_pdf(render_summary_html(summarize(entries)))
