"""HTTP server for the webstore API."""
