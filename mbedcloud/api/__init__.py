"""Low-level Connect API endpoint calls, one module per API area."""
