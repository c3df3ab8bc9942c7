"""HTTP glue around the tab prioritizer."""
