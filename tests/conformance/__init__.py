"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the ZiPPaY engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Money is neither created nor lost (fees aside)
2. atomicity.py - Rejected operations leave no partial state
3. idempotency.py - Repeating sync/settle/deny changes nothing

These tests use hypothesis for property-based testing.
"""
