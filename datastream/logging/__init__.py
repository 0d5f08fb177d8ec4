"""Application logging and row-issue log buffering."""
