"""Request middleware: authentication, CORS and error handling."""
