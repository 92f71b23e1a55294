"""Final résumé export as Markdown or plain text."""

import re

EXPORT_FORMATS = {
    "md": ("resume.md", "text/markdown; charset=utf-8"),
    "txt": ("resume.txt", "text/plain; charset=utf-8"),
}

_HEADING_RE = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]+", re.MULTILINE)
_BOLD_RE = re.compile(r"(\*\*|__)(.+?)\1")
_ITALIC_RE = re.compile(r"(?<![\w*])([*_])(?!\s)(.+?)(?<!\s)\1(?![\w*])")
_CODE_RE = re.compile(r"`([^`]*)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_BULLET_RE = re.compile(r"^([ \t]*)[*+-][ \t]+", re.MULTILINE)
_RULE_RE = re.compile(r"^[ \t]*([-*_])([ \t]*\1){2,}[ \t]*$", re.MULTILINE)


def markdown_to_plaintext(text: str) -> str:
    """Strip Markdown syntax, keeping the visible text and list structure.

    Links keep their display text followed by the URL in parentheses, since a
    plain-text résumé has no other way to carry it.
    """
    if not text:
        return ""

    text = _RULE_RE.sub("", text)
    text = _HEADING_RE.sub("", text)
    text = _LINK_RE.sub(lambda m: m.group(1) if m.group(1) == m.group(2) else f"{m.group(1)} ({m.group(2)})", text)
    text = _BOLD_RE.sub(r"\2", text)
    text = _ITALIC_RE.sub(r"\2", text)
    text = _CODE_RE.sub(r"\1", text)
    text = _BULLET_RE.sub(r"\1• ", text)

    # Collapse runs of blank lines left behind by removed rules
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip() + "\n"


def render(final_resume: str, fmt: str) -> tuple[str, str, str]:
    """Return (body, filename, media_type) for a download."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {fmt}")
    filename, media_type = EXPORT_FORMATS[fmt]
    body = final_resume.strip() + "\n" if fmt == "md" else markdown_to_plaintext(final_resume)
    return body, filename, media_type
