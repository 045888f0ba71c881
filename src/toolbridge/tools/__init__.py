"""
Bundled example tools, served when no other tool modules are selected.
"""
