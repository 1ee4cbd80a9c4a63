"""
Language detection from file paths.

Maps file extensions to Pygments lexer aliases. Only languages the
tokenizer is expected to handle are listed; anything else renders
as plain text.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional


EXT_TO_LANG: Dict[str, str] = {
    # TypeScript / JavaScript
    'ts': 'typescript',
    'mts': 'typescript',
    'cts': 'typescript',
    'tsx': 'tsx',
    'js': 'javascript',
    'mjs': 'javascript',
    'cjs': 'javascript',
    'jsx': 'jsx',
    # Python
    'py': 'python',
    'pyi': 'python',
    # Rust
    'rs': 'rust',
    # Go
    'go': 'go',
    # Java
    'java': 'java',
    # Shell
    'sh': 'bash',
    'bash': 'bash',
    'zsh': 'bash',
    # Data formats
    'json': 'json',
    'jsonc': 'json',
    # Web
    'html': 'html',
    'htm': 'html',
    'css': 'css',
    # Config
    'yaml': 'yaml',
    'yml': 'yaml',
    'toml': 'toml',
    # SQL
    'sql': 'sql',
    # Docs
    'md': 'markdown',
    'markdown': 'markdown',
    'mdx': 'markdown',
    # Diff
    'diff': 'diff',
    'patch': 'diff',
    # C/C++
    'c': 'c',
    'h': 'c',
    'cpp': 'cpp',
    'cxx': 'cpp',
    'cc': 'cpp',
    'hpp': 'cpp',
    'hxx': 'cpp',
    # XML
    'xml': 'xml',
    'svg': 'xml',
    'xsl': 'xml',
    'xslt': 'xml',
}


def guess_language(file_path: Optional[str]) -> Optional[str]:
    """
    Guess the language identifier from a file path's extension.

    Returns None when the path has no extension or the extension
    is not recognized.
    """
    return LanguageRegistry.get_language_for_file(file_path)


class LanguageRegistry:
    """Registry of extension to language mappings."""

    _extension_map: Dict[str, str] = dict(EXT_TO_LANG)

    @classmethod
    def get_language_for_file(cls, filename: Optional[str]) -> Optional[str]:
        """Get the language identifier for a file based on extension."""
        if not filename:
            return None

        _, ext = os.path.splitext(filename)
        if len(ext) <= 1:
            return None

        return cls._extension_map.get(ext[1:].lower())

    @classmethod
    def register_extension(cls, ext: str, language: str) -> None:
        """Register (or override) the language for an extension."""
        cls._extension_map[ext.lstrip('.').lower()] = language

    @classmethod
    def get_all_languages(cls) -> List[str]:
        """Get list of all registered language identifiers."""
        return sorted(set(cls._extension_map.values()))

    @classmethod
    def get_all_extensions(cls) -> List[str]:
        """Get list of all supported file extensions."""
        return list(cls._extension_map.keys())
