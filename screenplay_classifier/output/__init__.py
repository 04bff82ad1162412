from .spacing_rules import get_spacing_rule, apply_spacing_rules

__all__ = ["get_spacing_rule", "apply_spacing_rules"]
