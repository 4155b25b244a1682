"""Terminal presentation for CloudDecode."""
