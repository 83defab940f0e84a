"""
Browser-driven crawl/extract orchestrator.
Visits queued pages in a live browser tab, waits for scroll-based loading to settle
and writes one CSV artifact per page while tracking the remaining queue.
"""

__version__ = "0.1.0"
