"""Business logic shared by the HTTP interface and scripts."""
