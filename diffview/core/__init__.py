"""
Core rendering logic: data models, diff transforms, gap reveal and
the top-level render.
"""
