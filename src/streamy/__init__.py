"""Segment and export wearable sensor logs, and stream them into classifiers."""
