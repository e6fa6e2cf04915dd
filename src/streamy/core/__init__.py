"""Configuration, data model, errors, and the command line interface."""
