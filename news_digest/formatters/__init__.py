"""
Formatters
Digest output renderers
"""

from .output_formatter import OutputFormatter

__all__ = [
    'OutputFormatter',
]
