"""
Agent implementations for ReviewDash.

Contains the modules that move reviews through the pipeline:
- Ingestion Agent
- Review Normalization Agent
- Aggregation (Property Aggregator + Performance Reporter)
"""
