"""prdflow - Requirement and PRD review workflow.

This package provides the two-level reviewer approval workflow that gates
publication of requirements and PRD documents, the release schedule
calculator for versions, and a SQLAlchemy-backed store and CLI around them.
"""

__version__ = "0.1.0"
