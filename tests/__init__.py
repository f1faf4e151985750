"""
aclguard test suite.

This package contains tests for:
- Rule parsing and role resolution
- Rule table sources and resource resolvers
- Engine tests (decision point, factory)
- Enforcement decorators
"""
