# fml/core/__init__.py
"""
Core pipeline for fml: tokenizer, structural parser, value resolution,
file loading and rendering. Import from the submodules directly.
"""
