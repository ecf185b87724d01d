"""
pymvel Language Server Protocol (LSP) implementation.

This package provides an LSP server for MVEL expressions and programs,
enabling IDE features such as:
- Syntax error diagnostics
- Warnings for constructs that cannot be translated
- Notes where translation fell back on naming heuristics
- Hover preview of the translated Java text

Usage:
    # Start the LSP server (stdio mode)
    pymvel-lsp

    # Or run as a module
    python -m pymvel.lsp
"""

from pymvel.lsp.server import PyMvelLanguageServer, create_server, main

__all__ = [
    "PyMvelLanguageServer",
    "create_server",
    "main",
]
