"""
Top-level package for the electricity tariff comparator.

Sub-packages:
    catalog             regulator tables -> offer catalog
    pricing             cost calculation, ranking, estimation, savings
    document_processor  invoice PDF extraction
    validation          built-catalog self-test
    orchestrator        end-to-end workflows
"""
