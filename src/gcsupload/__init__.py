"""Single-file upload service writing to Google Cloud Storage."""
