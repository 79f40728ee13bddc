"""slskd daemon integration: searches, release parsing, downloads and queue state."""
