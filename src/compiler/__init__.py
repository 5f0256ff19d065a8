"""Stub compilers."""

from compiler.symbol_table import SymbolTableCompiler, render_signature

__all__ = ["SymbolTableCompiler", "render_signature"]
