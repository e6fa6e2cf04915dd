"""Reading sensor logs and writing CSV exports."""
