from .binding_validator import BindingValidationResult, BindingValidator
from .external_systems import requires_external_validation

__all__ = ["BindingValidationResult", "BindingValidator", "requires_external_validation"]
