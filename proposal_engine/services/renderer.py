"""Proposal renderer.

Turns a stored proposal into a standalone HTML document, an embeddable HTML
fragment, or plain text for pasting into the CRM. Rendering is the last step
after editing is finished: it never mutates the proposal and never lints it.

Only a small markdown subset is understood: ``**bold**``, single-line
``#``/``##``/``###`` headings and ``- `` bullets. Anything else is emitted as
literal (escaped) text.
"""

import logging
import re
from typing import List, Optional

from jinja2 import Environment
from markupsafe import Markup, escape

from proposal_engine.models import BlockSource, Proposal, RenderFormat

logger = logging.getLogger(__name__)

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_HEADING = re.compile(r"^(#{1,3}) (.+)$")

ITEMIZED_HEADING = "PRODUCTS & SERVICES"
SIGNATURES_HEADING = "ACCEPTANCE"
SECTION_SEPARATOR = "---"


# ===========================================
# Markdown Subset
# ===========================================

def _inline(text: str) -> str:
    return _BOLD.sub(r"<strong>\1</strong>", str(escape(text)))


def markdown_to_html(text: Optional[str]) -> Markup:
    """
    Expand the restricted markdown subset into HTML.

    Each non-empty line becomes a heading, a list item or a paragraph.
    Consecutive bullet lines are grouped into one ``<ul>``.
    """
    if not text:
        return Markup("")

    out: List[str] = []
    in_list = False
    for raw in text.split("\n"):
        line = raw.strip()
        if line.startswith("- "):
            if not in_list:
                out.append("<ul>")
                in_list = True
            out.append(f"<li>{_inline(line[2:])}</li>")
            continue

        if in_list:
            out.append("</ul>")
            in_list = False
        if not line:
            continue

        heading = _HEADING.match(line)
        if heading:
            level = len(heading.group(1))
            out.append(f"<h{level}>{_inline(heading.group(2))}</h{level}>")
        else:
            out.append(f"<p>{_inline(line)}</p>")

    if in_list:
        out.append("</ul>")
    return Markup("\n".join(out))


def markdown_to_plain(text: Optional[str]) -> str:
    """Strip the markdown subset, keeping line and bullet breaks."""
    if not text:
        return ""
    lines = []
    for raw in text.split("\n"):
        line = _BOLD.sub(r"\1", raw.strip())
        heading = _HEADING.match(line)
        if heading:
            line = heading.group(2)
        lines.append(line)
    return "\n".join(lines)


# ===========================================
# HTML Templates
# ===========================================

PROPOSAL_STYLES = """
    .proposal-html-content {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
      line-height: 1.6;
      color: #1a1a1a;
      font-size: 14px;
    }
    .proposal-html-content h1 { font-size: 1.75rem; margin-bottom: 0.5rem; color: #111; }
    .proposal-html-content h2 {
      font-size: 1.25rem;
      margin-top: 2rem;
      margin-bottom: 1rem;
      border-bottom: 2px solid #e5e5e5;
      padding-bottom: 0.5rem;
      text-transform: uppercase;
      letter-spacing: 0.5px;
      color: #333;
    }
    .proposal-html-content h3 { font-size: 1.1rem; margin-top: 1.5rem; color: #444; }
    .proposal-html-content h4 { font-size: 1rem; margin-top: 1rem; margin-bottom: 0.5rem; color: #555; }
    .proposal-html-content p { margin: 0.75rem 0; }
    .proposal-html-content ul { margin: 0.5rem 0; padding-left: 1.5rem; }
    .proposal-html-content li { margin: 0.25rem 0; }
    .proposal-html-content .proposal-cover { margin-bottom: 2rem; padding-bottom: 1.5rem; border-bottom: 1px solid #ddd; }
    .proposal-html-content .proposal-meta { color: #666; margin-top: 1rem; font-size: 0.95rem; }
    .proposal-html-content .brand-name { font-weight: 600; color: #333; }
    .proposal-html-content .greeting { font-size: 1.05rem; margin-bottom: 0.5rem; }
    .proposal-html-content .signoff { font-weight: 600; margin-top: 1.5rem; }
    .proposal-html-content .service-title { color: #2563eb; }
    .proposal-html-content .service-subsection { margin: 1rem 0; }
    .proposal-html-content .service-outcome { font-style: italic; color: #555; margin-top: 1rem; }
    .proposal-html-content .service-timeline { color: #666; font-size: 0.95rem; }
    .proposal-html-content .service-investment {
      margin-top: 1rem;
      padding: 0.75rem;
      background: #f5f5f5;
      border-radius: 4px;
      border-left: 3px solid #2563eb;
    }
    .proposal-html-content .placeholder { background: #fef3c7; padding: 1rem; border-radius: 4px; margin: 1.5rem 0; }
    .proposal-html-content .placeholder-text { color: #92400e; font-style: italic; }
    .proposal-html-content .terms-clause { margin: 1rem 0; }
    .proposal-html-content .proposal-terms { margin-top: 2rem; padding-top: 1rem; border-top: 1px solid #ddd; }
"""

BODY_TEMPLATE = """<div class="proposal-html-content">
<header class="proposal-cover">
  <h1 class="proposal-title">{{ cover.proposal_title }}</h1>
  <div class="proposal-meta">
    <div class="brand-name">{{ cover.brand_name }}</div>
    <div class="prepared-by">Prepared by {{ cover.prepared_by_name }}, {{ cover.prepared_by_title }}</div>
    <div class="date">Date: {{ cover.quote_created_date }}</div>
    <div class="for-client">
      <div>For: {{ cover.for_client_name }}</div>
      <div>{{ cover.for_client_org }}</div>
{% if cover.for_client_email %}
      <div>{{ cover.for_client_email }}</div>
{% endif %}
    </div>
  </div>
</header>
<section class="proposal-comments">
  <h2>{{ comments.heading }}</h2>
  <p class="greeting">{{ comments.greeting_line }}</p>
{% for paragraph in comments.paragraphs %}
  <p>{{ paragraph }}</p>
{% endfor %}
  <p class="signoff">{{ comments.signoff }}</p>
</section>
{% for service in services %}
<section class="proposal-service">
  <h2 class="service-title">{{ service.display_name }}</h2>
{% for sub in service.subsections %}
  <div class="service-subsection">
    <h4>{{ sub.number }}. {{ sub.title }}</h4>
    {{ service.resolve_body(sub) | markdown }}
  </div>
{% endfor %}
{% if service.outcome %}
  <p class="service-outcome">{{ service.outcome }}</p>
{% endif %}
{% if service.timeline %}
  <p class="service-timeline"><strong>Timeline:</strong> {{ service.timeline }}</p>
{% endif %}
{% set investment = service.resolve_investment() %}
{% if investment.render_hint %}
  <div class="service-investment"><strong>Investment:</strong> {{ investment.render_hint }}</div>
{% endif %}
</section>
{% endfor %}
{% for module in modules %}
<section class="proposal-module">
{% if module.title_caps %}
  <h2>{{ module.title_caps }}</h2>
{% endif %}
  {{ module.body_markdown | markdown }}
</section>
{% endfor %}
{% if itemized_placeholder %}
<section class="proposal-itemized placeholder">
  <h2>{{ itemized_heading }}</h2>
  <p class="placeholder-text">{{ itemized.placeholder_text or "" }}</p>
</section>
{% endif %}
<section class="proposal-terms">
  <h2>{{ terms.title_caps }}</h2>
{% if terms.intro_text %}
  <p>{{ terms.intro_text }}</p>
{% endif %}
{% for clause in clauses %}
  <div class="terms-clause">
    <h4>{{ clause.number }}. {{ clause.title or "" }}</h4>
    <p>{{ clause.body }}</p>
  </div>
{% endfor %}
</section>
{% if signatures_placeholder %}
<section class="proposal-signatures placeholder">
  <h2>{{ signatures_heading }}</h2>
  <p class="placeholder-text">{{ signatures.placeholder_text or "" }}</p>
</section>
{% endif %}
</div>"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ title }}</title>
  <style>{{ styles }}</style>
</head>
<body>
{{ body }}
</body>
</html>"""


_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_env.filters["markdown"] = markdown_to_html

_body_template = _env.from_string(BODY_TEMPLATE)
_document_template = _env.from_string(DOCUMENT_TEMPLATE)


# ===========================================
# Renderers
# ===========================================

def render_body_html(proposal: Proposal) -> str:
    """HTML fragment without the document wrapper, for embedding."""
    return _body_template.render(
        cover=proposal.cover,
        comments=proposal.comments,
        services=proposal.enabled_services,
        modules=proposal.enabled_modules,
        itemized=proposal.itemized,
        itemized_placeholder=proposal.itemized.source == BlockSource.PLACEHOLDER,
        itemized_heading=ITEMIZED_HEADING,
        terms=proposal.terms,
        clauses=sorted(proposal.terms.clauses, key=lambda c: c.number),
        signatures=proposal.signatures,
        signatures_placeholder=proposal.signatures.source == BlockSource.PLACEHOLDER,
        signatures_heading=SIGNATURES_HEADING,
    )


def render_html(proposal: Proposal, log: Optional[logging.Logger] = None) -> str:
    """Complete standalone HTML document."""
    log = log or logger
    log.info(f"Rendering proposal {proposal.id} to HTML")
    return _document_template.render(
        title=proposal.cover.proposal_title,
        styles=Markup(PROPOSAL_STYLES),
        body=Markup(render_body_html(proposal)),
    )


def render_plain_text(proposal: Proposal, log: Optional[logging.Logger] = None) -> str:
    """
    Plain text for clipboard paste.

    Sections are separated by ``---`` lines; markup is stripped but
    paragraph and bullet line breaks are kept.
    """
    log = log or logger
    log.info(f"Rendering proposal {proposal.id} to plain text")

    cover = proposal.cover
    lines: List[str] = [
        cover.proposal_title,
        "",
        cover.brand_name,
        f"Prepared by {cover.prepared_by_name}, {cover.prepared_by_title}",
        f"Date: {cover.quote_created_date}",
        f"For: {cover.for_client_name}, {cover.for_client_org}",
    ]
    if cover.for_client_email:
        lines.append(cover.for_client_email)
    lines += ["", SECTION_SEPARATOR, ""]

    comments = proposal.comments
    lines += [comments.heading.upper(), "", comments.greeting_line, ""]
    for paragraph in comments.paragraphs:
        lines += [paragraph, ""]
    lines += [comments.signoff, "", SECTION_SEPARATOR, ""]

    for service in proposal.enabled_services:
        lines += [service.display_name, ""]
        for sub in service.subsections:
            lines.append(f"{sub.number}. {sub.title}")
            lines.append(markdown_to_plain(service.resolve_body(sub)))
            lines.append("")
        if service.outcome:
            lines += [service.outcome, ""]
        if service.timeline:
            lines += [f"Timeline: {service.timeline}", ""]
        investment = service.resolve_investment()
        if investment.render_hint:
            lines += [f"Investment: {investment.render_hint}", ""]
        lines += [SECTION_SEPARATOR, ""]

    for module in proposal.enabled_modules:
        if module.title_caps:
            lines += [module.title_caps, ""]
        lines += [markdown_to_plain(module.body_markdown), "", SECTION_SEPARATOR, ""]

    if proposal.itemized.source == BlockSource.PLACEHOLDER:
        lines += [
            ITEMIZED_HEADING,
            "",
            proposal.itemized.placeholder_text or "",
            "",
            SECTION_SEPARATOR,
            "",
        ]

    terms = proposal.terms
    lines += [terms.title_caps, ""]
    if terms.intro_text:
        lines += [terms.intro_text, ""]
    for clause in sorted(terms.clauses, key=lambda c: c.number):
        lines.append(f"{clause.number}. {clause.title or ''}".rstrip())
        lines += [clause.body, ""]
    lines += [SECTION_SEPARATOR, ""]

    if proposal.signatures.source == BlockSource.PLACEHOLDER:
        lines += [SIGNATURES_HEADING, "", proposal.signatures.placeholder_text or ""]

    return "\n".join(lines)


def render(proposal: Proposal, fmt: RenderFormat, log: Optional[logging.Logger] = None) -> str:
    """Dispatch on the requested output format."""
    if fmt == RenderFormat.PLAIN:
        return render_plain_text(proposal, log=log)
    if fmt == RenderFormat.BODY:
        return render_body_html(proposal)
    return render_html(proposal, log=log)
