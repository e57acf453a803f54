"""RB-TnSeq fitness analysis for density-sorted Cupriavidus necator H16 screens."""

__version__ = "0.1.0"
