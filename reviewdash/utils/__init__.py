"""
Utility modules for ReviewDash.

Cross-cutting concerns:
- Ratings: Averaging and half-up rounding
- Dates: Timestamp parsing and UTC coercion
- Filters: Review filter and sort options
- Storage: File I/O helpers for data persistence
"""
