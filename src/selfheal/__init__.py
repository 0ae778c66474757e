"""
SelfHeal Core - automated runtime error remediation.

Classifies a captured runtime error, proposes a minimal guard-clause patch,
validates and critiques it, synthesizes regression tests and narrates the
result as a commit message and pull-request body.
"""

__version__ = "0.1.0"
