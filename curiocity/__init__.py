"""Curiocity backend: documents, folders and resources over DynamoDB."""
