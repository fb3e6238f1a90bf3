"""
Flowbuilder — connection rules and validation for visual automation workflows.

Packages:
    config/    — Environment-backed rule and scoring settings
    workflow/  — Document model, taxonomy, rule engine, validator, templates
"""

__version__ = "0.1.0"
