"""
Test Suite for the Cross-Asset Analytics Core

Includes:
- Unit tests for calculations (analysis/tests)
- Provider, transform and cache tests (ingestion/tests)
- Workflow tests against stub providers (no network)
"""
