"""
Page Feedback - local-first comments for static site pages.

Entries are kept on the device and, when a remote store is configured,
reconciled with it on every page load.
"""
