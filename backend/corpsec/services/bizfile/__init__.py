"""BizFile (ACRA business profile) extraction, normalization, diff and processing."""
