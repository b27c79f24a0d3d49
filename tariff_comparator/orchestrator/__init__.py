"""
Orchestrator package: exposes the catalog build and comparison entry points.

Functions are NOT imported at package level; import them from
workflow_manager when needed.
"""

__all__ = [
    "run_offer_build",
    "load_offer_catalog",
    "compare_from_bill",
    "compare_from_profile",
    "compare_from_invoice",
    "export_ranking",
]
