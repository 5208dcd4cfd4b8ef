"""Multi-tenant custom report builder service."""
