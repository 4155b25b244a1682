"""Data models shared by the explainer and the presentation layer."""
