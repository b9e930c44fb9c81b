"""Service layer — transaction pipeline and the result contract."""
