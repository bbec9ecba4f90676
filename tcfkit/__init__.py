"""tcfkit

IAB TCF consent-string decoder.

Public API surface:
- tcfkit.tcf : Core segment codec and vendor consent resolver
- tcfkit.gvl : caller-supplied Global Vendor List lookup table
- tcfkit.analysis : GVL-enriched per-vendor analysis
- tcfkit.main : FastAPI application
- tcfkit.cli.main : `tcf` CLI entrypoint
"""
__all__ = ["__version__"]
__version__ = "1.0.0"
