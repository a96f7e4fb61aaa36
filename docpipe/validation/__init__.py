from docpipe.validation.engine import ValidationEngine, ValidationPolicy, is_deployable

__all__ = ["ValidationEngine", "ValidationPolicy", "is_deployable"]
