"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the weighted pool share oracle.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_atomicity.py - All-or-nothing registration
2. test_determinism.py - Bit-reproducible prices
3. test_pricing_properties.py - Monotonicity, homogeneity, closed forms

These tests use hypothesis for property-based testing.
"""
