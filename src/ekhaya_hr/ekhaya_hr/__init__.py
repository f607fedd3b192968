"""Ekhaya HR dashboard backend.

The package is organized by feature modules (policy, users, approvals) with
a thin Flask controller layer over service and repository layers. All
authorization decisions go through one ``policy.engine.PolicyEngine`` built
at startup.
"""
