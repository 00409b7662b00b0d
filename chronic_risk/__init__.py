"""Chronic disease risk scoring engine.

This package contains the clinical formulas, the aggregation pipeline and the
domain models, isolated from storage and transport so it is easy to test and
reason about.
"""
