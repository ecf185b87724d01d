"""
pymvel Language Server Protocol (LSP) Server.

This module implements an LSP server for MVEL expressions and programs
using pygls (Python Language Server). It provides:

- Document synchronization (open, change, save, close)
- Diagnostics (syntax errors, unresolved constructs, translation notes)
- Hover showing the translated Java text of the document

Clients pass the names their documents may reference through
`initializationOptions`:

    {"declarations": {"person": "Person", "items": "java.util.List<Item>"},
     "mode": "expression"}

Usage:
    # Start the server in stdio mode (for IDE integration)
    pymvel-lsp

    # Start in TCP mode (for debugging)
    pymvel-lsp --tcp --port 2087
"""

import argparse
import logging
from typing import Any, Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from pymvel.compiler import build_registry
from pymvel.compiler.parser import ParseMode
from pymvel.compiler.registry import Registry
from pymvel.lsp.diagnostics import DiagnosticProvider
from pymvel.utils.errors import RegistryError

logger = logging.getLogger("pymvel-lsp")


class PyMvelLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for pymvel.

    This class handles LSP requests and notifications, keeping one
    diagnostic provider per open document.
    """

    def __init__(self) -> None:
        super().__init__(
            name="pymvel-lsp",
            version="v0.1.0",
        )

        # Document providers cache (uri -> provider)
        self._providers: dict[str, DiagnosticProvider] = {}

        self.registry: Registry = Registry.empty()
        self.mode: Optional[ParseMode] = None

        self._register_handlers()

    def _register_handlers(self) -> None:
        """
        Register all LSP request and notification handlers.

        pygls tags each handler with registration attributes, which bound
        methods cannot carry, so every method is wrapped in a plain function.
        """

        # Document synchronization
        @self.feature(types.TEXT_DOCUMENT_DID_OPEN)
        def did_open(params: types.DidOpenTextDocumentParams) -> None:
            self._on_did_open(params)

        @self.feature(types.TEXT_DOCUMENT_DID_CHANGE)
        def did_change(params: types.DidChangeTextDocumentParams) -> None:
            self._on_did_change(params)

        @self.feature(types.TEXT_DOCUMENT_DID_SAVE)
        def did_save(params: types.DidSaveTextDocumentParams) -> None:
            self._on_did_save(params)

        @self.feature(types.TEXT_DOCUMENT_DID_CLOSE)
        def did_close(params: types.DidCloseTextDocumentParams) -> None:
            self._on_did_close(params)

        # Hover
        @self.feature(types.TEXT_DOCUMENT_HOVER)
        def hover(params: types.HoverParams) -> Optional[types.Hover]:
            return self._on_hover(params)

    def configure(self, options: Optional[dict[str, Any]]) -> None:
        """
        Apply client initialization options.

        Unknown keys are ignored. Invalid declarations are logged and leave
        the registry empty.
        """
        options = options or {}
        declarations = options.get("declarations") or {}
        if not isinstance(declarations, dict):
            logger.error("Ignoring declarations: expected an object of name to type")
            declarations = {}
        try:
            self.registry = build_registry(declarations)
        except RegistryError as e:
            logger.error(f"Ignoring invalid declarations: {e.message}")
            self.registry = Registry.empty()

        mode = options.get("mode")
        try:
            self.mode = ParseMode(mode) if mode else None
        except ValueError:
            logger.error(f"Unknown parse mode '{mode}', detecting per document")
            self.mode = None

        logger.info(f"Configured {len(self.registry)} declarations")

    def _analyze_document(self, uri: str, text: str) -> DiagnosticProvider:
        """Analyze a document and cache the result."""
        provider = DiagnosticProvider(text, uri, self.registry, self.mode)
        provider.get_diagnostics()
        self._providers[uri] = provider
        return provider

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def _refresh(self, uri: str, text: str) -> None:
        provider = self._analyze_document(uri, text)
        self._publish_diagnostics(uri, provider.diagnostics)

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info(f"Document opened: {document.uri}")
        self._refresh(document.uri, document.text)

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        uri = params.text_document.uri

        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return

        logger.debug(f"Document changed: {uri}")
        self._refresh(uri, doc.source)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        uri = params.text_document.uri
        logger.info(f"Document saved: {uri}")

        doc = self.workspace.get_text_document(uri)
        if doc:
            self._refresh(uri, doc.source)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info(f"Document closed: {uri}")

        self._providers.pop(uri, None)
        self._publish_diagnostics(uri, [])

    # =========================================================================
    # Hover
    # =========================================================================

    def hover_for(self, uri: str) -> Optional[types.Hover]:
        """The translated text of a document, as a Java code block."""
        provider = self._providers.get(uri)
        if provider is None or provider.unit is None:
            return None

        unit = provider.unit
        lines = ["```java", unit.body, "```"]
        if unit.referenced_names:
            lines.append("")
            lines.append("Uses: " + ", ".join(f"`{name}`" for name in unit.referenced_names))
        return types.Hover(
            contents=types.MarkupContent(
                kind=types.MarkupKind.Markdown,
                value="\n".join(lines),
            )
        )

    def _on_hover(self, params: types.HoverParams) -> Optional[types.Hover]:
        """Handle hover request."""
        return self.hover_for(params.text_document.uri)


# =============================================================================
# Server Creation and Main Entry Point
# =============================================================================


def create_server() -> PyMvelLanguageServer:
    """Create and configure a pymvel language server instance."""
    server = PyMvelLanguageServer()

    @server.feature(types.INITIALIZE)
    def on_initialize(params: types.InitializeParams) -> None:
        """Read declarations and mode from the initialization options."""
        logger.info("Initializing pymvel Language Server")
        server.configure(params.initialization_options)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        logger.info("pymvel Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        logger.info("Shutting down pymvel Language Server")

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the pymvel language server.

    Starts the server in stdio mode for IDE integration, or in TCP mode
    with --tcp.
    """
    parser = argparse.ArgumentParser(
        description="pymvel Language Server",
        prog="pymvel-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.setLevel(getattr(logging, args.log_level.upper()))

    server = create_server()

    if args.tcp:
        logger.info(f"Starting pymvel LSP in TCP mode on {args.host}:{args.port}")
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting pymvel LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
