"""This is the processing submodule.

This module contains the functionality that turns raw sensor data into results.
This includes splitting logs into trial runs by button presses, and the sliding
window buffers that feed streaming samples into a classifier.
"""
