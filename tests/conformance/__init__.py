"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending pool.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Funds are only ever moved, never created or destroyed
2. atomicity.py - A failed operation leaves no trace
3. pending_invariant.py - The pending index and the loan records agree

These tests use hypothesis for property-based testing.
"""
