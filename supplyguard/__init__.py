"""
SupplyGuard - Known-Compromised Version Detector for npm Dependencies

Scans a project's package-lock.json and installed node_modules tree and compares
every resolved version against a list of exact versions known to be malicious:
- Compromised releases published during supply-chain attacks
- Hijacked maintainer accounts pushing trojaned patch versions
- Versions pulled from the registry but still sitting in lockfiles
"""

__version__ = "1.0.0"
__author__ = "SupplyGuard Team"
__description__ = "Known-Compromised Version Detector for npm Dependencies"
