from __future__ import annotations

import html
import io
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from code_to_pdf.config import IMAGE_EXTENSIONS, MARKDOWN_EXTENSIONS, EntryStatus, FileEntry, TreeEntry
from code_to_pdf.file_manipulation import format_tree, read_source
from code_to_pdf.latex import escape_command_chars, escape_latex, escape_url, markdown_to_latex, strip_emojis
from code_to_pdf.pagination import PartInfo

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pygments.lexer import Lexer

_ = Path()

HTML_FORMATTER = HtmlFormatter(style="default", cssclass="highlight")

BASE_CSS = """
body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; font-size: 11px; color: #24292e; }
h1 { font-size: 22px; border-bottom: 1px solid #eaecef; padding-bottom: 6px; }
h2 { font-size: 17px; margin-top: 24px; }
h3 { font-size: 13px; font-family: Menlo, Consolas, monospace; background: #f6f8fa; padding: 4px 8px; }
a { color: #0366d6; text-decoration: none; }
.directory-tree { font-family: Menlo, Consolas, monospace; font-size: 10px; line-height: 1.35; white-space: pre; }
.file-container { page-break-inside: auto; margin-bottom: 18px; }
.highlight pre { font-family: Menlo, Consolas, monospace; font-size: 9.5px; line-height: 1.35;
  white-space: pre-wrap; word-wrap: break-word; padding: 8px; border: 1px solid #e1e4e8; border-radius: 3px; }
"""

LATEX_PREAMBLE = r"""\documentclass[a4paper,11pt]{article}
\usepackage[utf8]{inputenc}
\usepackage[T1]{fontenc}
\usepackage{listings}
\usepackage{xcolor}
\usepackage{geometry}
\usepackage{hyperref}
\usepackage{graphicx}
\usepackage{fancyvrb}

\geometry{margin=2cm}

\definecolor{codebg}{RGB}{248,248,248}
\definecolor{codestring}{RGB}{163,21,21}
\definecolor{codecomment}{RGB}{0,128,0}
\definecolor{codekeyword}{RGB}{0,0,255}
\definecolor{codenumber}{RGB}{128,128,128}

\lstdefinelanguage{JavaScript}{
  keywords={async,await,break,case,catch,class,const,continue,default,delete,do,else,export,extends,
    finally,for,from,function,if,import,in,instanceof,let,new,of,return,super,switch,this,throw,try,
    typeof,var,void,while,yield},
  sensitive=true, comment=[l]{//}, morecomment=[s]{/*}{*/},
  morestring=[b]', morestring=[b]", morestring=[b]`
}
\lstdefinelanguage{Go}{
  keywords={break,case,chan,const,continue,default,defer,else,fallthrough,for,func,go,goto,if,import,
    interface,map,package,range,return,select,struct,switch,type,var},
  sensitive=true, comment=[l]{//}, morecomment=[s]{/*}{*/}, morestring=[b]", morestring=[b]`
}
\lstdefinelanguage{Rust}{
  keywords={as,async,await,break,const,continue,crate,dyn,else,enum,extern,fn,for,if,impl,in,let,loop,
    match,mod,move,mut,pub,ref,return,self,Self,static,struct,super,trait,type,unsafe,use,where,while},
  sensitive=true, comment=[l]{//}, morecomment=[s]{/*}{*/}, morestring=[b]"
}
\lstdefinelanguage{CSS}{
  sensitive=false, morecomment=[s]{/*}{*/}, morestring=[b]', morestring=[b]"
}
\lstdefinelanguage{JSON}{
  keywords={true,false,null}, sensitive=true, morestring=[b]"
}
\lstdefinelanguage{YAML}{
  keywords={true,false,null,yes,no}, sensitive=false, comment=[l]{\#},
  morestring=[b]', morestring=[b]"
}

\lstset{
  backgroundcolor=\color{codebg},
  basicstyle=\ttfamily\small,
  breakatwhitespace=false,
  breaklines=true,
  captionpos=b,
  commentstyle=\color{codecomment},
  extendedchars=true,
  frame=single,
  keepspaces=true,
  keywordstyle=\color{codekeyword}\bfseries,
  numbers=left,
  numbersep=5pt,
  numberstyle=\tiny\color{codenumber},
  rulecolor=\color{black},
  showspaces=false,
  showstringspaces=false,
  showtabs=false,
  stepnumber=1,
  stringstyle=\color{codestring},
  tabsize=2
}
"""


class DocumentModel(BaseModel):
    """Everything one render call needs.

    Attributes:
        title: Document title.
        root: The processing root; file sections show paths relative to it.
        tree: Tree entries of the whole walk (every chunk shows the full listing).
        files: The files whose contents this document carries, in order.
        part: Pagination banner data, None for single-document runs.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    root: Path
    tree: list[TreeEntry] = Field(default_factory=list)
    files: list[FileEntry] = Field(default_factory=list)
    part: PartInfo | None = None

    def sources(self) -> Iterator[tuple[FileEntry, str]]:
        """Yield each file entry with its raw contents."""
        for entry in self.files:
            yield entry, read_source(entry.path)


def lexer_for(code: str, language: str) -> Lexer:
    """Pick a Pygments lexer: by alias when known, by content guess otherwise.

    Args:
        code (str): the source to highlight, used for guessing
        language (str): a Pygments alias, or "" to guess

    Returns:
        Lexer: the selected lexer, plain text when nothing fits
    """
    try:
        if language:
            return get_lexer_by_name(language, stripnl=False)
        return guess_lexer(code, stripnl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False)


def highlight_code(code: str, language: str = "") -> str:
    """Highlight `code` into an HTML fragment (a `div.highlight` block)."""
    return highlight(code, lexer_for(code, language), HTML_FORMATTER)


def html_tree_name(entry: TreeEntry) -> str:
    """Tree label for HTML: included files link to their section."""
    name = html.escape(entry.name)
    if entry.status is EntryStatus.INCLUDED and entry.file is not None:
        return f'<a href="#{entry.file.file_id}">{name}</a>'
    return name


def build_html(document: DocumentModel) -> str:
    """Build the HTML document of one chunk.

    The page holds the title (with the part number when paginated), the full
    directory tree with links, then one highlighted section per file.

    Args:
        document (DocumentModel): the data to render

    Returns:
        str: a standalone HTML page with inline styles
    """
    out = io.StringIO()
    part = document.part
    title = html.escape(document.title)
    if part:
        title += f" - Part {part.current}/{part.total}"

    out.write('<!DOCTYPE html><html><head><meta charset="UTF-8">')
    out.write(f"<title>{title}</title>")
    out.write(f"<style>{BASE_CSS}{HTML_FORMATTER.get_style_defs('.highlight')}</style>")
    out.write("</head><body>")
    out.write(f"<h1>{title}</h1>")

    out.write('<h2>Directory Structure</h2><div class="directory-tree">')
    out.write(format_tree(document.tree, name=html_tree_name))
    out.write("</div>")

    out.write("<h2>File Contents</h2>")
    if part:
        out.write(f"<p>Showing files {part.start_file} to {part.end_file} of {part.total_files} total files</p>")

    for entry, code in document.sources():
        out.write('<div class="file-container">')
        out.write(f'<h3 id="{entry.file_id}">{html.escape(entry.rel)}</h3>')
        out.write(highlight_code(code, entry.highlight_language))
        out.write("</div>")

    out.write("</body></html>")
    return out.getvalue()


def latex_tree_name(entry: TreeEntry) -> str:
    """Tree label for LaTeX: included files link to their subsection label."""
    name = escape_command_chars(strip_emojis(entry.name))
    if entry.status is EntryStatus.INCLUDED and entry.file is not None:
        return rf"\hyperref[{entry.file.file_id}]{{{name}}}"
    return name


def latex_file_section(entry: FileEntry, code: str) -> str:
    """Render one file as a LaTeX subsection.

    Markdown is converted to LaTeX, images become figures, everything else is a
    `lstlisting` block tagged with its language when `listings` knows it.

    Args:
        entry (FileEntry): the file record
        code (str): the file contents

    Returns:
        str: the subsection source
    """
    rel = escape_latex(strip_emojis(entry.rel))
    out = io.StringIO()
    out.write(f"\\subsection{{{rel}}}\\label{{{entry.file_id}}}\n")

    if entry.extension in MARKDOWN_EXTENSIONS:
        out.write(markdown_to_latex(code, base_dir=entry.path.parent))
        out.write("\n")
    elif entry.extension in IMAGE_EXTENSIONS:
        out.write("\\begin{figure}[h]\n\\centering\n")
        out.write(f"\\includegraphics[width=0.8\\textwidth]{{{escape_url(entry.path.as_posix())}}}\n")
        out.write(f"\\caption{{{rel}}}\n\\end{{figure}}\n\n")
    else:
        body = strip_emojis(code)
        language = entry.listings_language
        out.write(f"\\begin{{lstlisting}}[language={language}]\n" if language else "\\begin{lstlisting}\n")
        out.write(body)
        if not body.endswith("\n"):
            out.write("\n")
        out.write("\\end{lstlisting}\n\n")
    return out.getvalue()


def build_latex(document: DocumentModel) -> str:
    """Build a complete LaTeX document: preamble, contents, tree and file sections.

    Args:
        document (DocumentModel): the data to render

    Returns:
        str: the `.tex` source
    """
    out = io.StringIO()
    out.write(LATEX_PREAMBLE)
    out.write(f"\n\\title{{{escape_latex(strip_emojis(document.title))}}}\n")
    out.write("\\date{\\today}\n\n")
    out.write("\\begin{document}\n\\maketitle\n\\tableofcontents\n\\newpage\n\n")

    out.write("\\section{Directory Structure}\n")
    out.write("\\begin{Verbatim}[commandchars=\\\\\\{\\}]\n")
    out.write(format_tree(document.tree, name=latex_tree_name))
    out.write("\\end{Verbatim}\n\n")

    out.write("\\section{File Contents}\n\n")
    for entry, code in document.sources():
        out.write(latex_file_section(entry, code))

    out.write("\\end{document}\n")
    return out.getvalue()
