"""Lambda handlers, one module per API Gateway route."""
