"""LaTeX text helpers: escaping, pictograph stripping and Markdown conversion."""

from __future__ import annotations

import re
from pathlib import Path

EMOJI_RE = re.compile(
    "["
    "\U0001f300-\U0001f5ff"
    "\U0001f600-\U0001f64f"
    "\U0001f680-\U0001f6ff"
    "\U0001f1e0-\U0001f1ff"
    "\U0001f900-\U0001f9ff"
    "\U0001fa00-\U0001faff"
    "\u2600-\u27bf"
    "\ufe00-\ufe0f"
    "\u231a-\u231b"
    "\u23e9-\u23f3"
    "\u23f8-\u23fa"
    "\u25aa-\u25ab"
    "\u25b6\u25c0"
    "\u25fb-\u25fe"
    "\u2934-\u2935"
    "\u2b05-\u2b07"
    "\u2b1b-\u2b1c"
    "\u2b50\u2b55"
    "\u3030\u303d\u3297\u3299"
    "\u200d"
    "]",
)

LATEX_SPECIALS: dict[str, str] = {
    "\\": r"\textbackslash{}",
    "#": r"\#",
    "$": r"\$",
    "%": r"\%",
    "&": r"\&",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "^": r"\textasciicircum{}",
    "~": r"\textasciitilde{}",
    "<": r"\textless{}",
    ">": r"\textgreater{}",
    "|": r"\textbar{}",
}
_LATEX_SPECIAL_RE = re.compile("[" + re.escape("".join(LATEX_SPECIALS)) + "]")

# Inside a fancyvrb `Verbatim` block with commandchars only these three are special.
_COMMAND_CHAR_RE = re.compile(r"[\\{}]")

HEADINGS = (
    r"\subsubsection*",
    r"\paragraph*",
    r"\subparagraph*",
    r"\subparagraph*",
    r"\subparagraph*",
    r"\subparagraph*",
)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_RULE_RE = re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$")
_BULLET_RE = re.compile(r"^\s*[*+-]\s+(.+)$")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.+)$")
_QUOTE_RE = re.compile(r"^\s*>\s?(.*)$")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_IMAGE_LINE_RE = re.compile(r"^\s*!\[(?P<alt>[^\]]*)\]\((?P<src>[^)\s]+)(?:\s+\"[^\"]*\")?\)\s*$")
_INLINE_RE = re.compile(
    r"(?P<code>`(?P<code_text>[^`]+)`)"
    r"|!\[(?P<alt>[^\]]*)\]\((?P<src>[^)\s]+)(?:\s+\"[^\"]*\")?\)"
    r"|\[(?P<text>[^\]]+)\]\((?P<href>[^)\s]+)(?:\s+\"[^\"]*\")?\)"
    r"|\*\*\*(?P<bi_star>.+?)\*\*\*"
    r"|(?<!\w)___(?P<bi_under>.+?)___(?!\w)"
    r"|\*\*(?P<b_star>.+?)\*\*"
    r"|(?<!\w)__(?P<b_under>.+?)__(?!\w)"
    r"|\*(?P<i_star>[^*\s](?:.*?[^*\s])?)\*"
    r"|(?<!\w)_(?P<i_under>[^_\s](?:.*?[^_\s])?)_(?!\w)",
)


def strip_emojis(text: str) -> str:
    """Remove pictographic characters LaTeX engines cannot typeset."""
    return EMOJI_RE.sub("", text)


def escape_latex(text: str) -> str:
    """Escape every character reserved by LaTeX in running text.

    Args:
        text (str): raw text

    Returns:
        str: text safe to place outside verbatim environments
    """
    return _LATEX_SPECIAL_RE.sub(lambda m: LATEX_SPECIALS[m.group(0)], text)


def escape_command_chars(text: str) -> str:
    """Escape the backslash and braces, the only command characters of a `Verbatim` tree block."""
    return _COMMAND_CHAR_RE.sub(lambda m: LATEX_SPECIALS[m.group(0)], text)


def escape_url(url: str) -> str:
    r"""Escape the characters a `\href` target or `\includegraphics` path cannot take raw."""
    return url.replace("\\", "/").replace("%", r"\%").replace("#", r"\#")


def image_source(src: str, base_dir: Path | None) -> str | None:
    """Resolve a Markdown image source to a local path `\\includegraphics` can load.

    Returns:
        str | None: a POSIX path, or None for remote images
    """
    if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", src):
        return None
    path = Path(src)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path.as_posix()


def render_image(alt: str, src: str, base_dir: Path | None) -> str:
    """Render a Markdown image as a graphics inclusion, or as a link when remote."""
    local = image_source(src, base_dir)
    if local is None:
        return rf"\href{{{escape_url(src)}}}{{{escape_latex(alt or src)}}}"
    return rf"\includegraphics[width=\textwidth]{{{escape_url(local)}}}"


def convert_inline(text: str, base_dir: Path | None = None) -> str:
    """Convert Markdown inline markup of one line into LaTeX.

    Handles inline code, images, links and `*`/`_` emphasis (nested emphasis is
    converted recursively). Everything else is escaped.

    Args:
        text (str): one line of Markdown, without block markers
        base_dir (Path | None): directory relative image sources resolve against

    Returns:
        str: the LaTeX rendering of the line
    """
    out: list[str] = []
    pos = 0
    for m in _INLINE_RE.finditer(text):
        out.append(escape_latex(text[pos : m.start()]))
        pos = m.end()
        groups = m.groupdict()
        if groups["code"] is not None:
            out.append(rf"\texttt{{{escape_latex(groups['code_text'])}}}")
        elif groups["src"] is not None:
            out.append(render_image(groups["alt"], groups["src"], base_dir))
        elif groups["href"] is not None:
            label = convert_inline(groups["text"], base_dir)
            out.append(rf"\href{{{escape_url(groups['href'])}}}{{{label}}}")
        elif (inner := groups["bi_star"] or groups["bi_under"]) is not None:
            out.append(rf"\textbf{{\textit{{{convert_inline(inner, base_dir)}}}}}")
        elif (inner := groups["b_star"] or groups["b_under"]) is not None:
            out.append(rf"\textbf{{{convert_inline(inner, base_dir)}}}")
        else:
            inner = groups["i_star"] or groups["i_under"] or ""
            out.append(rf"\textit{{{convert_inline(inner, base_dir)}}}")
    out.append(escape_latex(text[pos:]))
    return "".join(out)


def markdown_to_latex(markdown: str, base_dir: Path | None = None) -> str:
    """Convert a Markdown document into LaTeX, line by line.

    Headings map to starred sectioning commands by the number of `#`, fenced
    code goes to `verbatim`, bullet and numbered items are grouped into
    `itemize`/`enumerate`, `>` lines become quotes and `---` rules become
    `\\hrulefill`. Inline markup goes through `convert_inline`.

    Args:
        markdown (str): the Markdown source
        base_dir (Path | None): directory relative image sources resolve against

    Returns:
        str: LaTeX body text, newline-terminated
    """
    out: list[str] = []
    in_code = False
    list_env: str | None = None

    def close_list() -> None:
        nonlocal list_env
        if list_env is not None:
            out.append(rf"\end{{{list_env}}}")
            list_env = None

    def open_list(env: str) -> None:
        nonlocal list_env
        if list_env != env:
            close_list()
            out.append(rf"\begin{{{env}}}")
            list_env = env

    for line in strip_emojis(markdown).splitlines():
        if in_code:
            if _FENCE_RE.match(line):
                out.append(r"\end{verbatim}")
                in_code = False
            else:
                out.append(line)
            continue
        if _FENCE_RE.match(line):
            close_list()
            out.append(r"\begin{verbatim}")
            in_code = True
            continue
        if not line.strip():
            close_list()
            out.append("")
            continue
        if m := _HEADING_RE.match(line):
            close_list()
            command = HEADINGS[len(m.group(1)) - 1]
            out.append(f"{command}{{{convert_inline(m.group(2), base_dir)}}}")
        elif _RULE_RE.match(line):
            close_list()
            out.append(r"\noindent\hrulefill")
            out.append("")
        elif m := _IMAGE_LINE_RE.match(line):
            close_list()
            out.append(f"% Image: {m.group('alt')}")
            out.append(render_image(m.group("alt"), m.group("src"), base_dir))
        elif m := _BULLET_RE.match(line):
            open_list("itemize")
            out.append(rf"\item {convert_inline(m.group(1), base_dir)}")
        elif m := _NUMBERED_RE.match(line):
            open_list("enumerate")
            out.append(rf"\item {convert_inline(m.group(1), base_dir)}")
        elif m := _QUOTE_RE.match(line):
            close_list()
            out.append(rf"\begin{{quote}}{convert_inline(m.group(1), base_dir)}\end{{quote}}")
        else:
            close_list()
            out.append(convert_inline(line, base_dir))

    if in_code:
        out.append(r"\end{verbatim}")
    close_list()
    return "\n".join(out) + "\n"
