"""Scan source trees for hardcoded credentials.

secretsweep helps you:
- Find API keys, tokens, private keys and connection strings in a directory
- Scan remote git and Azure DevOps repositories through a shallow clone
- Filter placeholders and environment lookups, and mask what it reports
- Fail CI builds on findings above a severity
"""

__version__ = "0.1.0"

from secretsweep.scanner import ScanEngine, ScanRequest, default_ruleset, load_rules

__all__ = ["__version__", "ScanEngine", "ScanRequest", "default_ruleset", "load_rules"]
