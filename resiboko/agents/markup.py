"""
Analysis Text Renderer

Kuya Claims answers in a small markup subset. Lines are classified in
this order:

    ---              horizontal rule
    * text           bullet (inline **bold** spans allowed)
    **text**         heading (whole line bold)
    (blank)          skipped
    anything else    plain paragraph

Only bullets get inline bold. Any other markdown is shown literally.
"""

import html
import re
from typing import Literal

from pydantic import BaseModel, Field


BOLD_PATTERN = re.compile(r"(\*\*.*?\*\*)")


class Span(BaseModel):
    text: str
    bold: bool = False


class MarkupBlock(BaseModel):
    kind: Literal["rule", "heading", "bullet", "paragraph"]
    spans: list[Span] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.spans)


def _is_bold(part: str) -> bool:
    return len(part) >= 4 and part.startswith("**") and part.endswith("**")


def split_bold(text: str) -> list[Span]:
    """Split text on **...** into plain and bold spans."""
    spans = []
    for part in BOLD_PATTERN.split(text):
        if not part:
            continue
        if _is_bold(part):
            spans.append(Span(text=part[2:-2], bold=True))
        else:
            spans.append(Span(text=part))
    return spans


def render_analysis(text: str) -> list[MarkupBlock]:
    """Classify each line of an analysis answer into a display block."""
    blocks = []
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped == "---":
            blocks.append(MarkupBlock(kind="rule"))
        elif stripped.startswith("* "):
            blocks.append(MarkupBlock(kind="bullet", spans=split_bold(stripped[2:])))
        elif _is_bold(stripped):
            blocks.append(MarkupBlock(kind="heading", spans=[Span(text=stripped[2:-2], bold=True)]))
        elif not stripped:
            continue
        else:
            blocks.append(MarkupBlock(kind="paragraph", spans=[Span(text=stripped)]))
    return blocks


def _spans_html(spans: list[Span]) -> str:
    return "".join(
        f"<strong>{html.escape(s.text)}</strong>" if s.bold else html.escape(s.text)
        for s in spans
    )


def to_html(blocks: list[MarkupBlock]) -> str:
    """HTML for the blocks; all text is escaped."""
    parts = []
    for block in blocks:
        if block.kind == "rule":
            parts.append("<hr/>")
        elif block.kind == "heading":
            parts.append(f"<h4>{_spans_html(block.spans)}</h4>")
        elif block.kind == "bullet":
            parts.append(f'<p style="margin-left:1em">&bull; {_spans_html(block.spans)}</p>')
        else:
            parts.append(f"<p>{_spans_html(block.spans)}</p>")
    return "\n".join(parts)
