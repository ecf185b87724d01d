"""
Entry point for running the pymvel LSP server as a module.

Usage:
    python -m pymvel.lsp
    python -m pymvel.lsp --tcp --port 2087
"""

from pymvel.lsp.server import main

if __name__ == "__main__":
    main()
