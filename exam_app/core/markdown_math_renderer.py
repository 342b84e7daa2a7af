"""Markdown + LaTeX rendering of question text for web clients.

Prompts are authored in markdown with ``$...$`` math. The renderer turns them
into HTML and leaves the math for MathJax to typeset in the browser.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from exam_app.core.models import QuestionMeta

_MATHJAX_SCRIPT = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
)


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = MarkdownIt("commonmark", {"html": self.enable_html}).enable("table")

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_meta(self, meta: QuestionMeta) -> str:
        """Heading, parameter line and prompt of a question as one fragment."""

        return (
            f"<h2>{html.escape(meta.name)}</h2>\n"
            f"<p class=\"question-params\"><code>{html.escape(meta.params)}</code></p>\n"
            f"{self.render_fragment(meta.prompt)}"
        )

    def wrap_with_mathjax(self, body_html: str, title: str = "RaySphere Exam") -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{html.escape(title)}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }} }};
    </script>
    <script defer src=\"{_MATHJAX_SCRIPT}\"></script>
  </head>
  <body>
    <div class=\"question-html\">{body_html}</div>
  </body>
</html>"""

    def render_meta_document(self, meta: QuestionMeta) -> str:
        return self.wrap_with_mathjax(self.render_meta(meta), title=meta.name)


# Shared instance used by the API layer.
renderer = MarkdownMathRenderer()
