from ayla_lsp.lsp.server import AylaLanguageServer, create_server, start

__all__ = ["AylaLanguageServer", "create_server", "start"]
