from alchemist.validator.validator import Validator, validate_all, validate_and_report

__all__ = ["Validator", "validate_all", "validate_and_report"]
