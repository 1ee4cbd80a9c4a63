"""
Services used by the renderer: language detection, syntax tokenization
and settings.
"""
