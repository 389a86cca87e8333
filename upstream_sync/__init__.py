"""
Upstream Sync - keep a downstream repository in step with its upstream.

This package provides two command-line tools: one that cherry-picks upstream
commits onto a downstream branch, tracking provenance through commit message
annotations, and one that refreshes a vendored dependency directory.
"""

__version__ = "1.0.0"
