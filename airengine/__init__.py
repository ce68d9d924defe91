"""
AIR compiler package.

AIR is a compact block language for describing an application: its state,
style, UI tree, API routes, database schema, auth and background work. This
package turns an ``.air`` file into a React + Vite client and a FastAPI +
SQLAlchemy server.

The code is organised into several modules:

* ``lang`` - the lexer and the recursive-descent parser producing the AST.
* ``ast`` - dataclasses for the tree; blocks refer to each other by name only.
* ``ir`` - context extraction, the single pass that decides every flag the
  generators read (backend present, pages, storefront shape, auth gating).
* ``codegen`` - client, server and README generators, plus stats.
* ``cache`` - content hashes and the manifest used for incremental builds.
* ``cli`` - the ``airengine`` command, which owns all file-system I/O.
"""

from airengine.cache import compute_diff
from airengine.codegen import generate, transpile
from airengine.errors import AirConfigError, AirError, AirLexError, AirParseError
from airengine.ir import extract_context
from airengine.lang import parse, tokenize

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "tokenize",
    "parse",
    "extract_context",
    "generate",
    "transpile",
    "compute_diff",
    "AirError",
    "AirLexError",
    "AirParseError",
    "AirConfigError",
]
