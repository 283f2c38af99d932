"""Property-based tests for the QuickSearch transport.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of.

Test categories:
- test_buffer_properties: ordering and eviction invariants of the bounded buffer
- test_formatting_properties: level mapping and event projection invariants
"""
